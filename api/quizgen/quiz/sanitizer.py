from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Tuple

from quizgen.core.errors import JsonParseError, MalformedReplyError
from quizgen.core.logging import excerpt

logger = logging.getLogger("sanitizer")


@dataclass(frozen=True)
class CleanupRule:
    name: str
    pattern: re.Pattern[str]
    replacement: str


def _rule(name: str, pattern: str, replacement: str) -> CleanupRule:
    return CleanupRule(name=name, pattern=re.compile(pattern), replacement=replacement)


# Applied in this order. The backslash collapse must stay last: run earlier it
# would turn "\\(" into "\(" and the paren rule would then unescape it a second time.
CLEANUP_RULES: Tuple[CleanupRule, ...] = (
    _rule("json_fence", r"```json", ""),
    _rule("fence", r"```", ""),
    _rule("escaped_open_paren", r"\\\(", "("),
    _rule("escaped_close_paren", r"\\\)", ")"),
    _rule("escaped_caret", r"\\\^", "^"),
    _rule("escaped_underscore", r"\\_", "_"),
    _rule("escaped_open_brace", r"\\\{", "{"),
    _rule("escaped_close_brace", r"\\\}", "}"),
    _rule("double_backslash", r"\\\\", "\\"),
)


def apply_rule(rule: CleanupRule, text: str) -> str:
    # Literal replacement: the backslash rule's output must not be read as a regex escape.
    return rule.pattern.sub(lambda _m: rule.replacement, text)


def clean_json_string(text: str) -> str:
    for rule in CLEANUP_RULES:
        text = apply_rule(rule, text)
    return text


def extract_json_block(reply: str) -> str:
    """First "{" through last "}", inclusive."""
    start = reply.find("{")
    end = reply.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedReplyError(context={"raw": excerpt(reply)})
    return reply[start : end + 1]


def sanitize(reply: str) -> Any:
    """
    Turn a free-text model reply into parsed JSON.

    The result is returned as parsed; checking it against the quiz shape is
    left to quizgen.schemas.quiz.
    """
    block = extract_json_block(reply or "")
    cleaned = clean_json_string(block)
    logger.debug("clean json string=%s", excerpt(cleaned))

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise JsonParseError(
            context={"raw": excerpt(reply), "cleaned": excerpt(cleaned), "reason": str(e)}
        ) from e
