"""Keyphrase generation for target pages."""

from __future__ import annotations

import logging
from typing import List

from .config import EngineConfig
from .confirm import Oracle, extract_json_list
from .retrieval import clean_keywords

logger = logging.getLogger(__name__)

KEYWORD_SYSTEM_PROMPT = (
    "You are an SEO expert. Respond only with valid JSON, without markdown fences or explanation."
)


def build_keyword_prompt(page_title: str) -> str:
    return f"""Given this page title, return exactly 2-3 keyphrases that someone would naturally use when referencing this specific topic in another article. Extract them directly from the title and do not invent new phrases. All lowercase.

Rules:
- Use the most specific phrase from the title as the first entry
- For "X vs Y" or "X and Y" titles, also include a version with "and" instead of "vs" (or vice versa), and the secondary term alone if it stands on its own
- Never include a generic single word unless it is part of a longer phrase
- Return a JSON array of strings only

Examples:
- "Lipedema vs Lymphedema" -> ["lipedema vs lymphedema", "lipedema and lymphedema", "lymphedema"]
- "Best Diet for Lipedema" -> ["diet for lipedema", "lipedema diet"]
- "Can You Lose Weight With Lipedema" -> ["lose weight with lipedema", "weight loss with lipedema"]

Page title: "{page_title}"
"""


class KeywordGenerator:
    """Asks the oracle for the keyphrases other pages would use for a title."""

    def __init__(self, oracle: Oracle, config: EngineConfig) -> None:
        self.oracle = oracle
        self.config = config

    def generate(self, page_title: str) -> List[str]:
        temperature = float(self.config.get("temperatures", {}).get("keywords", 0.2))
        raw = self.oracle.complete(KEYWORD_SYSTEM_PROMPT, build_keyword_prompt(page_title), temperature=temperature)
        items = extract_json_list(raw, list_keys=("keywords", "keyphrases"))
        keywords = clean_keywords([item for item in items if isinstance(item, str)])
        if not keywords:
            logger.warning("Oracle returned no usable keyphrases for %r", page_title)
        return keywords
