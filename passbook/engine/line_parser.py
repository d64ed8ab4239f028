"""
Transaction line parsing for the Passbook engine.

Each statement line runs through an ordered cascade of matchers:

1. The detected bank's own transaction-line pattern (confidence 0.9), which
   also yields the CR/DR marker, running balance and reference code.
2. Generic date-description-amount patterns (confidence 0.7).

The first matcher that produces a valid transaction wins. Lines that match
nothing (headers, footers, boilerplate) are dropped silently.
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Pattern, Tuple

import structlog

from passbook.engine.bank_profiles import AMOUNT, DATE_DASH_LONG, DATE_SLASH_LONG
from passbook.engine.models import BankProfile, TransactionCandidate, TransactionType

logger = structlog.get_logger(__name__)


PROFILE_CONFIDENCE = 0.9
GENERIC_CONFIDENCE = 0.7

CREDIT_KEYWORDS = ("deposit", "credit", "salary", "transfer in", "interest")
DEBIT_KEYWORDS = ("withdrawal", "debit", "payment", "transfer out", "charge")

DATE_TOKEN = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4}|\d{2})$")


# =============================================================================
# Sub-algorithms
# =============================================================================

def normalize_date(token: str) -> Optional[date]:
    """
    Interpret a DD/MM/YYYY, DD-MM-YYYY, DD/MM/YY or DD-MM-YY token.

    Always day-month-year; two-digit years fall in 2000-2099. Returns None
    for tokens that are not real calendar dates (e.g. 31/02/2024).
    """
    match = DATE_TOKEN.match(token.strip())
    if not match:
        return None

    day, month, year_token = match.groups()
    year = int(year_token)
    if len(year_token) == 2:
        year += 2000

    try:
        return date(year, int(month), int(day))
    except ValueError:
        return None


def is_valid_date(token: str) -> bool:
    return normalize_date(token) is not None


def parse_amount(token: Optional[str]) -> Optional[Decimal]:
    """Parse a grouped amount such as ``1,50,000.00`` into a Decimal."""
    if not token:
        return None
    cleaned = token.replace(",", "").strip()
    try:
        return Decimal(cleaned)
    except (InvalidOperation, ValueError) as e:
        logger.warning("Failed to parse amount", value=token, error=str(e))
        return None


def determine_transaction_type(indicator: Optional[str], description: str) -> TransactionType:
    """
    Classify a transaction as credit or debit.

    An explicit CR/DR marker decides when present. Otherwise the description
    is scanned for credit keywords, then debit keywords. Anything else is
    treated as a debit.
    """
    if indicator:
        return TransactionType.CREDIT if "cr" in indicator.lower() else TransactionType.DEBIT

    desc = description.lower()
    if any(keyword in desc for keyword in CREDIT_KEYWORDS):
        return TransactionType.CREDIT
    if any(keyword in desc for keyword in DEBIT_KEYWORDS):
        return TransactionType.DEBIT
    return TransactionType.DEBIT


# =============================================================================
# Matchers
# =============================================================================

@dataclass(frozen=True)
class LineMatcher:
    """
    One step of the cascade.

    Group layout is fixed: 1 date, 2 description, 3 amount, and for
    detailed matchers 4 CR/DR marker and 5 balance.
    """
    label: str
    pattern: Pattern[str]
    base_confidence: float
    detailed: bool = False
    profile: Optional[BankProfile] = None

    def match(self, line: str) -> Optional[TransactionCandidate]:
        found = self.pattern.search(line)
        if not found:
            return None

        raw_date = found.group(1)
        posted_on = normalize_date(raw_date)
        if posted_on is None:
            return None

        amount = parse_amount(found.group(3))
        if amount is None:
            return None

        description = found.group(2).strip()
        indicator = found.group(4) if self.detailed else None
        balance = parse_amount(found.group(5)) if self.detailed else None
        reference = None
        if self.detailed and self.profile is not None:
            reference = self.profile.find_reference(line)

        return TransactionCandidate(
            date=raw_date,
            posted_on=posted_on,
            description=description,
            amount=amount,
            transaction_type=determine_transaction_type(indicator, description),
            indicator=indicator,
            balance=balance,
            reference=reference,
            base_confidence=self.base_confidence,
            matched_by=self.label,
        )


GENERIC_MATCHERS: Tuple[LineMatcher, ...] = (
    LineMatcher(
        label="generic:dd/mm/yyyy",
        pattern=re.compile(rf"({DATE_SLASH_LONG})\s+(.+?)\s+({AMOUNT})"),
        base_confidence=GENERIC_CONFIDENCE,
    ),
    LineMatcher(
        label="generic:dd-mm-yyyy",
        pattern=re.compile(rf"({DATE_DASH_LONG})\s+(.+?)\s+({AMOUNT})"),
        base_confidence=GENERIC_CONFIDENCE,
    ),
)


def profile_matcher(profile: BankProfile) -> Optional[LineMatcher]:
    if profile.transaction_line is None:
        return None
    return LineMatcher(
        label=f"profile:{profile.code.value}",
        pattern=profile.transaction_line,
        base_confidence=PROFILE_CONFIDENCE,
        detailed=True,
        profile=profile,
    )


class TransactionLineParser:
    """Runs the matcher cascade over individual statement lines."""

    def __init__(self, generic_matchers: Tuple[LineMatcher, ...] = GENERIC_MATCHERS):
        self._generic_matchers = generic_matchers

    def matchers_for(self, profile: Optional[BankProfile]) -> List[LineMatcher]:
        """Ordered cascade for a document of the given bank family."""
        matchers: List[LineMatcher] = []
        if profile is not None:
            bank_matcher = profile_matcher(profile)
            if bank_matcher is not None:
                matchers.append(bank_matcher)
        matchers.extend(self._generic_matchers)
        return matchers

    def parse(
        self,
        line: str,
        profile: Optional[BankProfile] = None,
        matchers: Optional[List[LineMatcher]] = None,
    ) -> Optional[TransactionCandidate]:
        """
        Parse one trimmed, non-empty line.

        Args:
            line: Statement line.
            profile: Detected bank profile, if any.
            matchers: Pre-built cascade; built from ``profile`` when omitted.

        Returns:
            TransactionCandidate from the first matcher that succeeds, or None.
        """
        for matcher in matchers if matchers is not None else self.matchers_for(profile):
            candidate = matcher.match(line)
            if candidate is not None:
                return candidate
        return None

    def parse_lines(self, lines: List[str], profile: Optional[BankProfile] = None) -> List[TransactionCandidate]:
        matchers = self.matchers_for(profile)
        candidates = []
        for line in lines:
            candidate = self.parse(line, matchers=matchers)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
