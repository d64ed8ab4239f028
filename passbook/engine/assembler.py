"""
Statement assembler for the Passbook engine.

Main entry point that turns one document's text into a StatementRecord:
1. Detect bank family
2. Extract account metadata
3. Split text into candidate lines
4. Parse lines through the matcher cascade
5. Drop duplicates
6. Score transactions and the document
"""

from typing import List, Optional

import structlog

from passbook.engine.bank_profiles import BankProfileRegistry, get_bank_registry
from passbook.engine.dedup import Deduplicator
from passbook.engine.fields import FieldExtractor
from passbook.engine.line_parser import TransactionLineParser
from passbook.engine.models import (
    ExtractedText,
    ExtractionConfig,
    StatementRecord,
)
from passbook.engine.scoring import ConfidenceScorer

logger = structlog.get_logger(__name__)


def split_lines(text: str) -> List[str]:
    """Trimmed, non-empty lines in document order."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def unknown_bank_name(code: str) -> str:
    return f"Unknown Bank ({code})"


class StatementAssembler:
    """
    Orchestrates the interpretation stages for one document at a time.

    Holds no per-document state, so a single instance can serve concurrent
    callers.
    """

    def __init__(
        self,
        registry: Optional[BankProfileRegistry] = None,
        field_extractor: Optional[FieldExtractor] = None,
        line_parser: Optional[TransactionLineParser] = None,
        deduplicator: Optional[Deduplicator] = None,
        scorer: Optional[ConfidenceScorer] = None,
    ):
        self._registry = registry or get_bank_registry()
        self._fields = field_extractor or FieldExtractor()
        self._parser = line_parser or TransactionLineParser()
        self._deduplicator = deduplicator or Deduplicator()
        self._scorer = scorer or ConfidenceScorer()

    def assemble(
        self,
        text: str,
        filename: str,
        config: Optional[ExtractionConfig] = None,
        extracted: Optional[ExtractedText] = None,
    ) -> StatementRecord:
        """
        Interpret one document.

        Args:
            text: Full document text.
            filename: Source filename, carried into the record.
            config: Caller options; only ``multi_pass_extraction`` affects output.
            extracted: Acquisition result whose method and confidence are
                passed through to the record untouched.

        Returns:
            StatementRecord for the document.
        """
        config = config or ExtractionConfig()

        code, profile = self._registry.detect(text)
        fields = self._fields.extract(text)

        lines = split_lines(text)
        candidates = self._parser.parse_lines(lines, profile)
        unique = self._deduplicator.dedupe(candidates)
        transactions = tuple(self._scorer.annotate(c) for c in unique)
        accuracy = self._scorer.accuracy(transactions)

        record = StatementRecord(
            filename=filename,
            bank_name=profile.name if profile else unknown_bank_name(code),
            account_number=fields.account_number,
            account_holder=fields.account_holder,
            statement_period=fields.statement_period,
            transactions=transactions,
            accuracy=accuracy,
            processing_method=config.processing_method,
            bank_code=code,
            extraction_method=extracted.method if extracted else None,
            extraction_confidence=extracted.confidence if extracted else None,
        )

        logger.info(
            "Statement interpreted",
            filename=filename,
            bank=code,
            lines=len(lines),
            candidates=len(candidates),
            transactions=len(transactions),
            accuracy=round(accuracy, 2),
        )

        return record


_assembler_instance: Optional[StatementAssembler] = None


def get_statement_assembler() -> StatementAssembler:
    """Get singleton StatementAssembler instance."""
    global _assembler_instance
    if _assembler_instance is None:
        _assembler_instance = StatementAssembler()
    return _assembler_instance


def interpret_statement(
    text: str,
    filename: str,
    config: Optional[ExtractionConfig] = None,
    extracted: Optional[ExtractedText] = None,
) -> StatementRecord:
    """Interpret statement text with the shared assembler."""
    return get_statement_assembler().assemble(text, filename, config, extracted)
