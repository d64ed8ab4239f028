"""
Passbook Engine - bank statement interpretation.

Turns raw statement text into a confidence-scored StatementRecord:
bank detection, account metadata, a transaction line cascade,
duplicate elimination and confidence scoring. The engine is pure and
synchronous; it never reads documents itself.
"""

from passbook.engine.assembler import StatementAssembler, interpret_statement
from passbook.engine.bank_profiles import BankProfileRegistry, get_bank_registry
from passbook.engine.models import (
    NOT_FOUND,
    AccuracyLevel,
    BankCode,
    BankProfile,
    ExtractedText,
    ExtractionConfig,
    StatementRecord,
    Transaction,
    TransactionCandidate,
    TransactionType,
)

__version__ = "1.0.0"
__all__ = [
    "interpret_statement",
    "StatementAssembler",
    "BankProfileRegistry",
    "get_bank_registry",
    "NOT_FOUND",
    "AccuracyLevel",
    "BankCode",
    "BankProfile",
    "ExtractedText",
    "ExtractionConfig",
    "StatementRecord",
    "Transaction",
    "TransactionCandidate",
    "TransactionType",
]
