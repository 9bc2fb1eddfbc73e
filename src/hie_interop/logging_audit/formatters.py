"""Log formatter that can mask patient demographics."""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts patient names and birth dates from log messages.

    Audit lines carry demographics as ``key=value`` pairs (``name=Jane Doe``,
    ``birthDate=1980-01-01``); these are the patterns redacted.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(levelname)s %(name)s: %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        # Values end at the audit field separator " | " or end of line
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            (
                re.compile(r'\b(name|firstName|lastName|patientName)=[^|\n]*?(?=\s*\||$)', re.MULTILINE),
                r'\1=[NAME-REDACTED]',
            ),
            (
                re.compile(r'\b(birthDate|dateOfBirth)=[^|\n]*?(?=\s*\||$)', re.MULTILINE),
                r'\1=[DOB-REDACTED]',
            ),
            # Free-text "Patient: Jane Doe"
            (
                re.compile(r'(Patient|Name):\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+'),
                r'\1: [NAME-REDACTED]',
            ),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction."""
        original = super().format(record)

        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
