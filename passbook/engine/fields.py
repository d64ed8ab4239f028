"""
Account metadata extraction.

Keyword-driven and independent of bank detection, so it also works for
statements from banks outside the catalog. Every extractor returns the
``NOT_FOUND`` sentinel instead of raising.
"""

import re
from dataclasses import dataclass
from typing import Pattern, Sequence

from passbook.engine.models import NOT_FOUND

ACCOUNT_NUMBER_PATTERNS = (
    re.compile(r"Account.*?Number[:\s]*([0-9X]+)", re.IGNORECASE),
    re.compile(r"A/C[:\s]*([0-9X]+)", re.IGNORECASE),
    re.compile(r"Account[:\s]*([0-9X]+)", re.IGNORECASE),
)

# Holder names and periods stop at the end of their line.
ACCOUNT_HOLDER_PATTERNS = (
    re.compile(r"Account Holder[:\s]*([A-Za-z \t]+)", re.IGNORECASE),
    re.compile(r"Name[:\s]*([A-Za-z \t]+)", re.IGNORECASE),
)

STATEMENT_PERIOD_PATTERNS = (
    re.compile(r"Statement Period[:\s]*([0-9/\- \t]+to[0-9/\- \t]+)", re.IGNORECASE),
    re.compile(r"Period[:\s]*([0-9/\- \t]+to[0-9/\- \t]+)", re.IGNORECASE),
)


def _first_capture(text: str, patterns: Sequence[Pattern[str]], strip: bool = True) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip() if strip else match.group(1)
            if value:
                return value
    return NOT_FOUND


def extract_account_number(text: str) -> str:
    return _first_capture(text, ACCOUNT_NUMBER_PATTERNS, strip=False)


def extract_account_holder(text: str) -> str:
    return _first_capture(text, ACCOUNT_HOLDER_PATTERNS)


def extract_statement_period(text: str) -> str:
    return _first_capture(text, STATEMENT_PERIOD_PATTERNS)


@dataclass(frozen=True)
class AccountFields:
    """Document-level metadata, each value possibly ``NOT_FOUND``."""
    account_number: str
    account_holder: str
    statement_period: str


class FieldExtractor:
    """Runs the three metadata extractors over a whole document."""

    def extract(self, text: str) -> AccountFields:
        return AccountFields(
            account_number=extract_account_number(text),
            account_holder=extract_account_holder(text),
            statement_period=extract_statement_period(text),
        )
