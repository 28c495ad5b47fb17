from __future__ import annotations

import time
from typing import Callable

from django.conf import settings
from django.core.cache import caches
from django.http import HttpRequest, HttpResponse, JsonResponse

DEFAULT_THROTTLE_LIMIT = 30  # requests
DEFAULT_THROTTLE_WINDOW = 60  # seconds
DEFAULT_THROTTLE_KEY_PREFIX = 'backlinker:throttle'


class SlidingWindowRateThrottle:
    """Sliding-window limiter for the pipeline trigger routes, per client IP."""

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
        *,
        limit: int | None = None,
        window: int | None = None,
        cache_alias: str = 'default',
        key_prefix: str | None = None,
    ) -> None:
        self.get_response = get_response
        self.limit = limit or getattr(settings, 'THROTTLE_LIMIT', DEFAULT_THROTTLE_LIMIT)
        self.window = window or getattr(settings, 'THROTTLE_WINDOW', DEFAULT_THROTTLE_WINDOW)
        self.cache = caches[cache_alias]
        self.key_prefix = key_prefix or getattr(settings, 'THROTTLE_KEY_PREFIX', DEFAULT_THROTTLE_KEY_PREFIX)

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    def process_view(self, request: HttpRequest, view_func, view_args, view_kwargs) -> HttpResponse | None:
        resolved = getattr(request, 'resolver_match', None)
        if resolved is None:
            return None

        route_name = f"{resolved.namespace}:{resolved.url_name}" if resolved.namespace else resolved.url_name
        if route_name not in getattr(settings, 'THROTTLED_ROUTES', []):
            return None

        return self.check(request, route_name)

    def check(self, request: HttpRequest, route_name: str) -> HttpResponse | None:
        """Record a hit for ``route_name``; return a 429 response once over the limit."""

        cache_key = f"{self.key_prefix}:{route_name}:{self._get_client_ip(request)}"
        now = time.time()
        bucket = self.cache.get(cache_key, [])
        bucket = [timestamp for timestamp in bucket if timestamp > now - self.window]

        if len(bucket) >= self.limit:
            return JsonResponse(
                {'detail': 'Rate limit exceeded. Try again shortly.', 'route': route_name},
                status=429,
            )

        bucket.append(now)
        self.cache.set(cache_key, bucket, timeout=self.window)
        return None

    def _get_client_ip(self, request: HttpRequest) -> str:
        header = getattr(settings, 'THROTTLE_IP_HEADER', 'HTTP_X_FORWARDED_FOR')
        if header in request.META:
            value = request.META[header]
            return value.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')


def sliding_window_rate_throttle(get_response: Callable[[HttpRequest], HttpResponse]) -> SlidingWindowRateThrottle:
    return SlidingWindowRateThrottle(get_response)
