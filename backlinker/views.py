"""HTTP triggers for the backlink pipeline.

A scheduler (cron, a hosted job runner, or a person with curl) calls
these endpoints to analyse one target page or to run one deferred
link-check batch. Both return JSON and, when
``BACKLINKER_CRON_SECRET`` is configured, require it as a bearer token.
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .engine.errors import BacklinkerError, FetchError
from .engine.pipeline import build_pipeline

logger = logging.getLogger(__name__)


def _authorized(request: HttpRequest) -> bool:
    secret = getattr(settings, 'BACKLINKER_CRON_SECRET', '')
    if not secret:
        return True
    return request.headers.get('Authorization', '') == f'Bearer {secret}'


def _unauthorized() -> JsonResponse:
    return JsonResponse({'error': 'Unauthorized'}, status=401)


@csrf_exempt
@require_POST
def analyze(request: HttpRequest) -> JsonResponse:
    """Analyse the target page named in the JSON body ``{"url": ...}``."""

    if not _authorized(request):
        return _unauthorized()

    try:
        payload = json.loads(request.body or b'{}')
    except ValueError:
        return JsonResponse({'error': 'Request body must be JSON.'}, status=400)
    url = payload.get('url') if isinstance(payload, dict) else None
    if not url or not isinstance(url, str):
        return JsonResponse({'error': 'A valid URL is required.'}, status=400)

    try:
        result = build_pipeline().analyze_target(url.strip())
    except FetchError as exc:
        logger.warning('[analyze] %s', exc)
        return JsonResponse({'ok': False, 'error': str(exc)}, status=502)
    except BacklinkerError as exc:
        logger.error('[analyze] %s', exc)
        return JsonResponse({'ok': False, 'error': str(exc)}, status=500)

    return JsonResponse({'ok': True, **result.as_dict()})


@csrf_exempt
@require_POST
def link_checks(request: HttpRequest) -> JsonResponse:
    """Run one deferred link-check batch (``?batch_size=`` overrides the default)."""

    if not _authorized(request):
        return _unauthorized()

    batch_size = request.GET.get('batch_size')
    try:
        size = int(batch_size) if batch_size else None
    except ValueError:
        return JsonResponse({'error': 'batch_size must be an integer.'}, status=400)
    if size is not None and size < 1:
        return JsonResponse({'error': 'batch_size must be positive.'}, status=400)

    summary = build_pipeline().run_link_checks(size)
    logger.info('[link-checks] processed=%s removed=%s', summary.processed, summary.removed)
    return JsonResponse({'ok': True, **summary.as_dict()})
