"""Token estimation and context-size control for AI prompts.

Token counts are a cheap chars/4 heuristic rather than a real tokenizer; they
only need to be good enough to keep prompt cost under a ceiling.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Callable, Iterable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Ceilings for context injected into the system prompt and for the chat
# history sent with it; the response gets its own max_tokens.
MAX_CONTEXT_TOKENS = 2000
MAX_HISTORY_TOKENS = 2000

CHARS_PER_TOKEN = 4
TOKEN_BUFFER = 50
TRUNCATION_NOTICE = "\n[Content truncated for brevity]"

_WHITESPACE = re.compile(r"\s+")

# USD per token
MODEL_RATES: dict[str, dict[str, float]] = {
    "claude-sonnet-4-5-20250929": {"input": 3.00 / 1_000_000, "output": 15.00 / 1_000_000},
    "claude-haiku-4-5": {"input": 1.00 / 1_000_000, "output": 5.00 / 1_000_000},
    "default": {"input": 3.00 / 1_000_000, "output": 15.00 / 1_000_000},
}


def estimate_tokens(text: str | None) -> int:
    """
    Estimate the number of tokens in a string (~4 characters per token).

    Whitespace runs count as a single character.

    Example:
        >>> estimate_tokens("Back squat 5x5")
        4
    """
    if not text:
        return 0
    normalized = _WHITESPACE.sub(" ", text).strip()
    return math.ceil(len(normalized) / CHARS_PER_TOKEN)


def estimate_json_tokens(obj: Any) -> int:
    """Estimate tokens for a JSON-serialisable object (+20% punctuation overhead)."""

    try:
        serialized = json.dumps(obj)
    except (TypeError, ValueError):
        return 0
    return math.ceil(estimate_tokens(serialized) * 1.2)


def truncate_to_token_limit(text: str, max_tokens: int) -> str:
    """
    Truncate text so its estimate fits within ``max_tokens``.

    Cuts at the last sentence end or newline when one falls in the latter
    half of the allowed span, and appends a truncation notice.

    Args:
        text: Text to truncate
        max_tokens: Maximum tokens allowed

    Returns:
        The original text if it already fits, otherwise a shortened copy
        (empty when the budget is too small to hold anything useful)
    """
    if estimate_tokens(text) <= max_tokens:
        return text

    target_chars = (max_tokens - TOKEN_BUFFER) * CHARS_PER_TOKEN
    if target_chars <= 0:
        return ""

    truncated = text[:target_chars]
    break_point = max(truncated.rfind("."), truncated.rfind("\n"))

    if break_point > target_chars * 0.5:
        return truncated[: break_point + 1] + TRUNCATION_NOTICE

    return truncated + "..." + TRUNCATION_NOTICE


def truncate_list_to_token_limit(
    items: Iterable[T],
    max_tokens: int,
    to_str: Callable[[T], str] = json.dumps,
) -> list[T]:
    """Keep leading items while their combined estimate stays within ``max_tokens``."""

    total = 0
    kept: list[T] = []
    for item in items:
        item_tokens = estimate_tokens(to_str(item))
        if total + item_tokens > max_tokens:
            break
        total += item_tokens
        kept.append(item)
    return kept


def log_token_usage(component: str, tokens: int, limit: int) -> str:
    """Log token usage against a limit and return the status (OK/WARNING/EXCEEDED)."""

    percentage = round(tokens / limit * 100) if limit else 0
    if tokens > limit:
        status = "EXCEEDED"
    elif tokens > limit * 0.8:
        status = "WARNING"
    else:
        status = "OK"

    level = logging.INFO if status == "OK" else logging.WARNING
    logger.log(level, "Token usage %s: %d/%d tokens (%d%%) - %s", component, tokens, limit, percentage, status)
    return status


def create_token_report(components: dict[str, Any]) -> dict[str, dict[str, int]]:
    """Token and character counts per named prompt component."""

    report: dict[str, dict[str, int]] = {}
    for name, content in components.items():
        text = content if isinstance(content, str) else json.dumps(content, default=str)
        report[name] = {"tokens": estimate_tokens(text), "chars": len(text)}
    return report


def calculate_cost(model_id: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimated USD cost of one model call."""

    rates = MODEL_RATES.get(model_id, MODEL_RATES["default"])
    cost = prompt_tokens * rates["input"] + completion_tokens * rates["output"]
    return round(cost, 6)
