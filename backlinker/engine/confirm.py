"""Oracle-backed confirmation of retrieved candidates.

The language model decides which candidates are real backlink
opportunities and picks an anchor phrase for each. This module builds a
deterministic request from its inputs and decodes the reply, salvaging
the first JSON array embedded in surrounding chatter. Whatever the model
returns is validated before it can become a suggestion.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from ..models import Suggestion
from .config import EngineConfig
from .errors import OracleError
from .types import Candidate, SuggestionDraft
from .urlnorm import normalize_url

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?")

_ORIGIN_ALIASES: Dict[str, str] = {
    "title": Suggestion.AnchorOrigin.TITLE,
    "title-derived": Suggestion.AnchorOrigin.TITLE,
    "title_derived": Suggestion.AnchorOrigin.TITLE,
    "variation": Suggestion.AnchorOrigin.VARIATION,
    "keyword-variation": Suggestion.AnchorOrigin.VARIATION,
    "keyword_variation": Suggestion.AnchorOrigin.VARIATION,
}

CONFIRM_SYSTEM_PROMPT = (
    "You are an internal linking specialist. "
    "Respond only with valid JSON, without markdown fences or explanation."
)


class Oracle(Protocol):
    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float = ...) -> str:
        ...


def extract_json_list(raw: str, *, list_keys: Sequence[str] = ()) -> List[Any]:
    """Decode a JSON array from an oracle reply.

    The reply is parsed as-is first (an object wrapping the array under
    one of ``list_keys`` is unwrapped). If that fails, the first
    bracket-delimited region that decodes to a list is used instead.
    Anything else raises :class:`OracleError`.
    """

    text = _FENCE.sub("", raw or "").strip()
    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None
    else:
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict):
            for key in list_keys:
                if isinstance(parsed.get(key), list):
                    return parsed[key]

    decoder = json.JSONDecoder()
    for match in re.finditer(r"\[", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(value, list):
            return value

    raise OracleError(f"Unparseable oracle response: {text[:200]}")


def build_confirm_prompt(target_title: str, target_summary: str, candidates: Sequence[Candidate]) -> str:
    """Return the user prompt for a confirmation request.

    The prompt depends only on its arguments and lists candidates in the
    order given.
    """

    lines = []
    for index, candidate in enumerate(candidates, start=1):
        lines.append(f'{index}. Source: "{candidate.source_title}" ({candidate.source_url})')
        lines.append(f'   Sentence: "{candidate.sentence}"')
        if candidate.matched_keyword:
            lines.append(f'   Matched keyword: "{candidate.matched_keyword}"')
        lines.append("")
    candidate_text = "\n".join(lines).rstrip()

    return f"""We have a newly published page:
Title: "{target_title}"
Summary: "{target_summary}"

Below are candidate sentences from existing pages that might be good places to add an internal link to the new page. For each candidate:
1. Decide whether it is genuinely a good link opportunity (contextually relevant, natural placement).
2. If yes, choose anchor text:
   - If the title follows an "X vs Y" or "X and Y" pattern, do not use the title or a title-like phrase. Use the secondary term alone if it fits, or a descriptive phrase such as "the difference between X and Y".
   - Otherwise prefer the most specific phrase taken from the title, preferring a shorter sub-phrase when it reads more naturally.
   - Only if no title phrase fits, use a keyword variation instead.
   The anchor text must appear word for word in the context sentence and read like natural prose, never like a heading.
3. If no, leave the candidate out of the output.

Return a JSON array where each item has:
- "sourceUrl": string
- "sourceTitle": string
- "suggestedAnchorText": string
- "anchorOrigin": either "title" or "variation"
- "context": the original sentence (lightly tidied if needed)
- "reason": one sentence explaining the relevance

Candidates:
{candidate_text}"""


def _clean(value: Any) -> str:
    return " ".join(str(value or "").split())


def validate_items(items: Sequence[Any], candidates: Sequence[Candidate]) -> List[SuggestionDraft]:
    """Turn decoded oracle items into drafts, dropping anything unusable.

    Items must name one of the candidate sources, carry a non-empty
    anchor with a known origin tag, and the anchor must occur in the
    context sentence. Only the first item per source is kept.
    """

    by_source = {normalize_url(candidate.source_url): candidate for candidate in candidates}
    drafts: List[SuggestionDraft] = []
    seen: set[str] = set()

    for item in items:
        if not isinstance(item, dict):
            logger.warning("Ignoring non-object oracle item: %r", item)
            continue
        key = normalize_url(_clean(item.get("sourceUrl")))
        candidate = by_source.get(key)
        if candidate is None:
            logger.warning("Ignoring suggestion for unknown source %r", item.get("sourceUrl"))
            continue
        if key in seen:
            continue

        anchor = _clean(item.get("suggestedAnchorText"))
        origin = _ORIGIN_ALIASES.get(_clean(item.get("anchorOrigin") or item.get("anchorSource")).lower())
        context = _clean(item.get("context")) or candidate.sentence
        reason = _clean(item.get("reason"))

        if not anchor:
            logger.warning("Ignoring suggestion for %s without anchor text", candidate.source_url)
            continue
        if origin is None:
            logger.warning("Ignoring suggestion for %s with unknown anchor origin", candidate.source_url)
            continue
        if anchor.lower() not in context.lower():
            logger.warning("Ignoring suggestion for %s: anchor %r not in context", candidate.source_url, anchor)
            continue

        seen.add(key)
        drafts.append(
            SuggestionDraft(
                source_url=candidate.source_url,
                source_title=_clean(item.get("sourceTitle")) or candidate.source_title,
                anchor_text=anchor,
                anchor_origin=str(origin),
                context=context,
                reason=reason,
            )
        )
    return drafts


class SuggestionConfirmer:
    """Delegates relevance judgement and anchor choice to the oracle."""

    def __init__(self, oracle: Oracle, config: EngineConfig) -> None:
        self.oracle = oracle
        self.config = config

    def request(self, target_title: str, target_summary: str, candidates: Sequence[Candidate]) -> Tuple[str, str]:
        return CONFIRM_SYSTEM_PROMPT, build_confirm_prompt(target_title, target_summary, candidates)

    def confirm(
        self,
        target_title: str,
        target_summary: str,
        candidates: Sequence[Candidate],
    ) -> List[SuggestionDraft]:
        if not candidates:
            return []
        system_prompt, user_prompt = self.request(target_title, target_summary, candidates)
        temperature = float(self.config.get("temperatures", {}).get("confirm", 0.4))
        raw = self.oracle.complete(system_prompt, user_prompt, temperature=temperature)
        items = extract_json_list(raw, list_keys=("suggestions",))
        drafts = validate_items(items, candidates)
        logger.info("Oracle confirmed %s of %s candidate(s)", len(drafts), len(candidates))
        return drafts
