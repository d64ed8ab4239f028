"""
Data structures for the Passbook interpretation engine.

- BankCode / BankProfile: closed catalog of known statement layouts
- TransactionCandidate: provisional parse of one statement line
- Transaction: scored, deduplicated final transaction
- StatementRecord: one interpreted document
- ExtractionConfig / ExtractedText: caller configuration and upstream text
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Pattern, Tuple

if TYPE_CHECKING:
    from passbook.config import Settings

NOT_FOUND = "Not Found"
UNKNOWN_BANK_CODE = "UNKNOWN"

MULTI_PASS_LABEL = "Multi-pass Analysis"
SINGLE_PASS_LABEL = "Single-pass Analysis"


class BankCode(str, Enum):
    """Short codes of the supported bank families."""
    SBI = "SBI"
    HDFC = "HDFC"
    ICICI = "ICICI"
    AXIS = "AXIS"


class TransactionType(str, Enum):
    """Direction of money movement."""
    DEBIT = "debit"
    CREDIT = "credit"


class AccuracyLevel(str, Enum):
    """Accuracy bands for a whole document."""
    HIGH = "high"      # >= 85
    MEDIUM = "medium"  # >= 70
    LOW = "low"        # < 70

    @classmethod
    def from_accuracy(cls, accuracy: float) -> "AccuracyLevel":
        if accuracy >= 85:
            return cls.HIGH
        elif accuracy >= 70:
            return cls.MEDIUM
        return cls.LOW


# =============================================================================
# Bank Profiles
# =============================================================================

@dataclass(frozen=True)
class BankProfile:
    """
    Pattern set describing one bank's statement layout.

    ``date_formats`` and ``amount_format`` describe how the bank prints dates
    and amounts; the first date format is the one ``transaction_line`` is
    built from. Parsing itself runs through ``transaction_line`` and
    ``reference_pattern``.
    """
    code: BankCode
    name: str
    date_formats: Tuple[Pattern[str], ...]
    amount_format: Pattern[str]
    transaction_line: Optional[Pattern[str]] = None
    reference_pattern: Optional[Pattern[str]] = None

    def matches(self, text_upper: str) -> bool:
        """True when the display name or short code appears in upper-cased text."""
        return self.name.upper() in text_upper or self.code.value in text_upper

    def find_reference(self, line: str) -> Optional[str]:
        if self.reference_pattern is None:
            return None
        match = self.reference_pattern.search(line)
        return match.group(1) if match else None


# =============================================================================
# Transactions
# =============================================================================

@dataclass
class TransactionCandidate:
    """A provisional transaction parsed from a single line."""
    date: str                  # raw token as printed
    posted_on: date            # day-month-year interpretation of ``date``
    description: str
    amount: Decimal
    transaction_type: TransactionType
    indicator: Optional[str] = None
    balance: Optional[Decimal] = None
    reference: Optional[str] = None
    base_confidence: float = 0.7
    matched_by: str = ""
    confidence: Optional[float] = None

    @property
    def duplicate_key(self) -> Tuple[date, Decimal, str]:
        return (self.posted_on, self.amount, self.description[:20])


@dataclass(frozen=True)
class Transaction:
    """A final, scored transaction."""
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    confidence: float
    balance: Optional[Decimal] = None
    reference: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: TransactionCandidate, confidence: float) -> "Transaction":
        return cls(
            date=candidate.posted_on,
            description=candidate.description.strip(),
            amount=abs(candidate.amount),
            type=candidate.transaction_type,
            confidence=confidence,
            balance=candidate.balance,
            reference=candidate.reference,
        )

    @property
    def is_complete(self) -> bool:
        """Date, description, a non-zero amount and a type are all present."""
        return bool(self.date and self.description and self.amount and self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "type": self.type.value,
            "balance": float(self.balance) if self.balance is not None else None,
            "reference": self.reference,
            "confidence": self.confidence,
        }


# =============================================================================
# Statement Record
# =============================================================================

@dataclass(frozen=True)
class StatementRecord:
    """Structured interpretation of one statement document."""
    filename: str
    bank_name: str
    account_number: str
    account_holder: str
    statement_period: str
    transactions: Tuple[Transaction, ...]
    accuracy: float
    processing_method: str
    bank_code: str = UNKNOWN_BANK_CODE
    extraction_method: Optional[str] = None
    extraction_confidence: Optional[float] = None

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @property
    def accuracy_level(self) -> AccuracyLevel:
        return AccuracyLevel.from_accuracy(self.accuracy)

    def low_confidence_transactions(self, threshold: float) -> List[Transaction]:
        """Transactions a caller may want to hide or flag for review."""
        return [t for t in self.transactions if t.confidence < threshold]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["transactions"] = [t.to_dict() for t in self.transactions]
        data["transaction_count"] = self.transaction_count
        data["accuracy_level"] = self.accuracy_level.value
        return data


# =============================================================================
# Inputs
# =============================================================================

@dataclass
class ExtractionConfig:
    """Caller-supplied options for one interpretation run."""
    multi_pass_extraction: bool = True
    # Not applied by the engine; callers use it to flag low-confidence rows.
    confidence_threshold: float = 0.7
    use_advanced_ocr: bool = True

    @property
    def processing_method(self) -> str:
        return MULTI_PASS_LABEL if self.multi_pass_extraction else SINGLE_PASS_LABEL

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ExtractionConfig":
        return cls(
            multi_pass_extraction=settings.multi_pass_extraction,
            confidence_threshold=settings.confidence_threshold,
            use_advanced_ocr=settings.use_advanced_ocr,
        )


@dataclass
class ExtractedText:
    """Text handed over by an acquisition collaborator."""
    text: str
    method: str
    confidence: float
    page_count: int = 0
    warnings: List[str] = field(default_factory=list)
