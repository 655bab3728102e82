"""Classify rejected rule submissions into ignorable skips or real failures."""

import json
from typing import NamedTuple

from sentinel_deploy.models.results import RuleOutcome


class ErrorPattern(NamedTuple):
    substring: str
    outcome: RuleOutcome
    reason: str


# Evaluated in order, case-insensitively; the first match wins.
IGNORABLE_ERRORS: tuple[ErrorPattern, ...] = (
    ErrorPattern(
        "one of the tables does not exist",
        RuleOutcome.SKIPPED_MISSING_DEPENDENCY,
        "a table the query needs is not in this workspace",
    ),
    ErrorPattern(
        "the given column",
        RuleOutcome.SKIPPED_MISSING_DEPENDENCY,
        "the query references a column missing from this workspace",
    ),
    ErrorPattern(
        "FailedToResolveScalarExpression",
        RuleOutcome.SKIPPED_INVALID_QUERY,
        "the query has an expression that does not resolve here",
    ),
    ErrorPattern(
        "SemanticError",
        RuleOutcome.SKIPPED_INVALID_QUERY,
        "the query has a semantic error in this workspace",
    ),
)


class Classification(NamedTuple):
    outcome: RuleOutcome
    reason: str


def error_text(body: str) -> str:
    """Flatten an ARM error body to the text worth matching against.

    JSON bodies of the form ``{"error": {"code": ..., "message": ...}}`` yield
    ``"<code>: <message>"``; anything else is returned as-is.
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return body or ""
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return body
    return f"{error.get('code', '')}: {error.get('message', '')}"


def classify_rule_error(
    body: str,
    patterns: tuple[ErrorPattern, ...] = IGNORABLE_ERRORS,
) -> Classification:
    """Map an error body to a terminal rule outcome; unknown errors are failures."""
    # Nested error details are not always lifted into the top-level message.
    haystack = f"{error_text(body)}\n{body or ''}".lower()
    for pattern in patterns:
        if pattern.substring.lower() in haystack:
            return Classification(pattern.outcome, pattern.reason)
    return Classification(RuleOutcome.FAILED, "submission rejected")
