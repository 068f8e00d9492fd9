"""Domain-event extraction from canonical records.

The matching rule is a plain text heuristic ("<marker> ... for <subject>").
It sits behind ``EventExtractor`` so a deployment can swap it without touching
deduplication or aggregation.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from .models import Event, LogRecord

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "createTreatment"
DEFAULT_EVENT_KIND = "treatment_created"
DEFAULT_REDACTION_MARKER = "*"

# First and last name tokens only.
_SUBJECT_GROUP = r"(?P<subject>[A-Za-z*]+(?:[ \t]+[A-Za-z*]+)?)"


def default_subject_pattern(marker: str) -> str:
    """Pattern for ``<marker> ... for <subject>``; subject is one or two letter/asterisk tokens."""
    return re.escape(marker) + r".*?\bfor\s+" + _SUBJECT_GROUP


class EventExtractor(Protocol):
    """Extractor interface: scan records and return candidate events."""

    def extract(self, records: Iterable[LogRecord]) -> list[Event]:
        ...


@dataclass(frozen=True, slots=True)
class ExtractionRule:
    """Marker, subject pattern and validity policy for one event kind."""

    marker: str = DEFAULT_MARKER
    kind: str = DEFAULT_EVENT_KIND
    pattern: str | None = None  # must define a "subject" group; derived from marker if None
    redaction_marker: str = DEFAULT_REDACTION_MARKER
    require_redaction: bool = True

    @property
    def regex(self) -> re.Pattern[str]:
        return re.compile(self.pattern or default_subject_pattern(self.marker))


@dataclass(frozen=True, slots=True)
class MarkerEventExtractor:
    """Emit one event per record whose message carries the rule's marker."""

    rule: ExtractionRule = ExtractionRule()

    def subject_of(self, message: str) -> str | None:
        """Return the subject text for a marker message, or None when invalid."""
        if self.rule.marker not in message:
            return None
        m = self.rule.regex.search(message)
        if m is None:
            return None
        subject = " ".join(m.group("subject").split())
        if not subject:
            return None
        if self.rule.require_redaction and self.rule.redaction_marker not in subject:
            # Unredacted subjects are treated as non-events.
            logger.debug("Discarding unredacted subject candidate")
            return None
        return subject

    def extract(self, records: Iterable[LogRecord]) -> list[Event]:
        events: list[Event] = []
        for record in records:
            subject = self.subject_of(record.message)
            if subject is None:
                continue
            events.append(
                Event(
                    timestamp=record.timestamp,
                    subject_key=subject,
                    kind=self.rule.kind,
                    stream=record.stream,
                    message=record.message,
                )
            )
        return events


def extract(records: Iterable[LogRecord], rule: ExtractionRule | None = None) -> list[Event]:
    """Extract events with the given rule (default: treatment creation)."""
    return MarkerEventExtractor(rule or ExtractionRule()).extract(records)
