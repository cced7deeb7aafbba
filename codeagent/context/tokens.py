"""Approximate token counting and truncation.

There is no tokenizer dependency: a token is estimated as four
characters. Code that budgets prompts takes the estimator as a callable
so a real tokenizer can replace it.
"""

import math
from typing import Callable

TokenEstimator = Callable[[str], int]

CHARS_PER_TOKEN = 4
# Characters kept per token when cutting; below CHARS_PER_TOKEN so the
# truncated text stays under the limit.
TRUNCATE_CHARS_PER_TOKEN = 3.5
# A boundary cut must keep at least this share of the target length.
MIN_BOUNDARY_RATIO = 0.7
TRUNCATION_MARKER = "\n\n[Content truncated to fit token limit]"


def estimate_tokens(text: str) -> int:
    """Estimated token count: characters / 4, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def truncate_to_token_limit(
    text: str,
    max_tokens: int,
    estimator: TokenEstimator = estimate_tokens,
) -> str:
    """Cut text to roughly max_tokens, preferring a sentence or line end.

    The cut lands on the last "." or newline when that keeps more than
    70% of the target length, otherwise at the raw character limit. A
    truncation marker is appended whenever text was cut.
    """
    if not text or max_tokens <= 0:
        return ""
    if estimator(text) <= max_tokens:
        return text

    max_chars = math.floor(max_tokens * TRUNCATE_CHARS_PER_TOKEN)
    if len(text) <= max_chars:
        return text

    head = text[:max_chars]
    cut_point = max(head.rfind("."), head.rfind("\n"))
    if cut_point > max_chars * MIN_BOUNDARY_RATIO:
        return text[: cut_point + 1] + TRUNCATION_MARKER
    return head + TRUNCATION_MARKER
