"""
Bank profile registry for the Passbook engine.

The catalog is a closed, ordered tuple of profiles. Detection walks it in
order and the first profile whose display name or short code appears in the
document wins, so statements that also mention another bank (for example a
beneficiary inside a transfer memo) resolve deterministically.
"""

import re
from typing import Iterator, Optional, Tuple

import structlog

from passbook.engine.models import UNKNOWN_BANK_CODE, BankCode, BankProfile

logger = structlog.get_logger(__name__)


# Amounts use Indian digit grouping (1,50,000.00) as well as Western grouping.
AMOUNT = r"\d{1,3}(?:,\d{2,3})*\.\d{2}"

DATE_SLASH_LONG = r"\d{2}/\d{2}/\d{4}"
DATE_DASH_LONG = r"\d{2}-\d{2}-\d{4}"
DATE_SLASH_SHORT = r"\d{2}/\d{2}/\d{2}"
DATE_DASH_SHORT = r"\d{2}-\d{2}-\d{2}"


def _transaction_line(date_pattern: str) -> re.Pattern:
    """date, description, amount, optional CR/DR marker (any case), optional balance."""
    return re.compile(
        rf"^({date_pattern})\s+(.+?)\s+({AMOUNT})\s*((?i:[CD]R))?\s*({AMOUNT})?"
    )


def _profile(
    code: BankCode,
    name: str,
    date_formats: Tuple[str, ...],
    reference: str,
) -> BankProfile:
    """The first date format is the one printed at the start of transaction lines."""
    return BankProfile(
        code=code,
        name=name,
        date_formats=tuple(re.compile(f"({fmt})") for fmt in date_formats),
        amount_format=re.compile(f"({AMOUNT})"),
        transaction_line=_transaction_line(date_formats[0]),
        reference_pattern=re.compile(reference, re.IGNORECASE),
    )


# Priority order is part of the detection contract.
BANK_PROFILES: Tuple[BankProfile, ...] = (
    _profile(
        BankCode.SBI,
        "State Bank of India",
        (DATE_SLASH_LONG, DATE_DASH_LONG),
        r"REF[:\s]+([A-Z0-9]+)",
    ),
    _profile(
        BankCode.HDFC,
        "HDFC Bank",
        (DATE_SLASH_SHORT, DATE_DASH_SHORT),
        r"TXN[:\s]+([A-Z0-9]+)",
    ),
    _profile(
        BankCode.ICICI,
        "ICICI Bank",
        (DATE_SLASH_LONG, DATE_DASH_LONG),
        r"REF NO[:\s]+([A-Z0-9]+)",
    ),
    _profile(
        BankCode.AXIS,
        "Axis Bank",
        (DATE_SLASH_LONG, DATE_DASH_LONG),
        r"UTR[:\s]+([A-Z0-9]+)",
    ),
)


class BankProfileRegistry:
    """Read-only lookup over the ordered bank catalog."""

    def __init__(self, profiles: Tuple[BankProfile, ...] = BANK_PROFILES):
        self._profiles = tuple(profiles)

    def __iter__(self) -> Iterator[BankProfile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def codes(self) -> Tuple[BankCode, ...]:
        return tuple(p.code for p in self._profiles)

    def get(self, code: BankCode | str) -> Optional[BankProfile]:
        """Look up a profile by its short code."""
        key = code.value if isinstance(code, BankCode) else str(code).upper()
        return next((p for p in self._profiles if p.code.value == key), None)

    def detect(self, text: str) -> Tuple[str, Optional[BankProfile]]:
        """
        Detect the bank family of a document.

        Args:
            text: Full document text.

        Returns:
            Tuple of (code label, profile). The label is ``"UNKNOWN"`` and the
            profile ``None`` when nothing in the catalog is mentioned.
        """
        text_upper = text.upper()
        for profile in self._profiles:
            if profile.matches(text_upper):
                logger.debug("Bank detected", bank=profile.code.value)
                return profile.code.value, profile

        logger.debug("No bank profile matched")
        return UNKNOWN_BANK_CODE, None


_registry_instance: Optional[BankProfileRegistry] = None


def get_bank_registry() -> BankProfileRegistry:
    """Get singleton BankProfileRegistry instance."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = BankProfileRegistry()
    return _registry_instance
