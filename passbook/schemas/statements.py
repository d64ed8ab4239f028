"""
Pydantic schemas for statement API endpoints.

Defines request and response models for interpretation, upload and export.
"""
import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from passbook.engine import ExtractionConfig, StatementRecord


class ExtractionOptions(BaseModel):
    """Caller options for one interpretation run."""

    multi_pass_extraction: bool = Field(True, description="Label the run as multi-pass analysis")
    confidence_threshold: float = Field(
        0.7, ge=0.0, le=1.0, description="Transactions below this confidence are flagged"
    )
    use_advanced_ocr: bool = Field(True, description="Allow OCR fallback for scanned documents")

    def to_config(self) -> ExtractionConfig:
        return ExtractionConfig(
            multi_pass_extraction=self.multi_pass_extraction,
            confidence_threshold=self.confidence_threshold,
            use_advanced_ocr=self.use_advanced_ocr,
        )


class InterpretRequest(BaseModel):
    """Request model for interpreting statement text."""

    filename: str = Field(..., min_length=1, description="Source document filename")
    text: str = Field(..., description="Full statement text")
    options: ExtractionOptions = Field(default_factory=ExtractionOptions)


class ExportRequest(BaseModel):
    """Request model for workbook export."""

    statements: List[InterpretRequest] = Field(..., description="Statements to interpret and export")


class TransactionResponse(BaseModel):
    """Response model for a single transaction."""

    date: datetime.date
    description: str
    amount: float
    type: str = Field(..., description="credit or debit")
    balance: Optional[float] = None
    reference: Optional[str] = None
    confidence: float = Field(..., description="Transaction confidence (0-1)")
    low_confidence: bool = Field(False, description="Below the requested confidence threshold")


class StatementResponse(BaseModel):
    """Response model for an interpreted statement."""

    filename: str
    bank_name: str
    bank_code: str
    account_number: str
    account_holder: str
    statement_period: str
    transactions: List[TransactionResponse]
    transaction_count: int
    accuracy: float = Field(..., description="Document accuracy (0-100)")
    accuracy_level: str
    processing_method: str
    low_confidence_count: int = 0

    @classmethod
    def from_record(cls, record: StatementRecord, confidence_threshold: float) -> "StatementResponse":
        transactions = [
            TransactionResponse(
                **t.to_dict(),
                low_confidence=t.confidence < confidence_threshold,
            )
            for t in record.transactions
        ]
        return cls(
            filename=record.filename,
            bank_name=record.bank_name,
            bank_code=record.bank_code,
            account_number=record.account_number,
            account_holder=record.account_holder,
            statement_period=record.statement_period,
            transactions=transactions,
            transaction_count=record.transaction_count,
            accuracy=record.accuracy,
            accuracy_level=record.accuracy_level.value,
            processing_method=record.processing_method,
            low_confidence_count=len(record.low_confidence_transactions(confidence_threshold)),
        )


class BatchErrorResponse(BaseModel):
    """A document that could not be processed."""

    file: str
    error: str


class BatchResponse(BaseModel):
    """Response model for an uploaded batch of statement PDFs."""

    job_id: str = Field(..., description="Batch job identifier")
    total_files: int
    successful: int
    failed: int
    statements: List[StatementResponse] = Field(..., description="Interpreted statements in upload order")
    errors: List[BatchErrorResponse] = Field(default_factory=list)
    processing_time_ms: float
