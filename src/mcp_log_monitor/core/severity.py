"""Keyword-based severity classification."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .models import Severity


@dataclass(frozen=True, slots=True)
class SeverityRules:
    """Lower-case substrings checked in order: error first, then warning."""

    error_keywords: Sequence[str] = ("error", "exception")
    warning_keywords: Sequence[str] = ("warn",)


DEFAULT_RULES = SeverityRules()


def classify(message: str, rules: SeverityRules = DEFAULT_RULES) -> Severity:
    """Return the severity for a message. Error keywords win over warning keywords."""
    lowered = (message or "").lower()
    if any(k in lowered for k in rules.error_keywords):
        return Severity.ERROR
    if any(k in lowered for k in rules.warning_keywords):
        return Severity.WARNING
    return Severity.INFO
