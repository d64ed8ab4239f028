"""
Batch processor service for Passbook.

Interprets several statement documents concurrently. Each document goes
through text acquisition and the interpretation engine on a worker thread;
a failure is recorded against that document only and never stops the batch.
"""
import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from passbook.config import get_settings
from passbook.engine import ExtractionConfig, StatementRecord, interpret_statement
from passbook.exceptions import PassbookError
from passbook.services.text_source import PdfTextSource, TextSource

logger = structlog.get_logger(__name__)


class DocumentStatus(str, Enum):
    """Processing status of one document in a batch."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class BatchDocument:
    """One document tracked by a batch job."""

    path: Path
    status: DocumentStatus = DocumentStatus.PENDING
    accuracy: Optional[float] = None
    error: Optional[str] = None
    record: Optional[StatementRecord] = None

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class BatchJob:
    """Represents a batch interpretation job."""

    id: uuid.UUID
    documents: List[BatchDocument]
    config: ExtractionConfig
    progress: float = 0.0  # 0.0 to 1.0
    created_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def records(self) -> List[StatementRecord]:
        return [d.record for d in self.documents if d.record is not None]


@dataclass
class BatchResult:
    """Result of a batch interpretation run."""

    job_id: uuid.UUID
    total_files: int
    successful: int
    failed: int
    records: List[StatementRecord]
    errors: List[Dict[str, str]]
    processing_time_ms: float


class BatchProcessor:
    """
    Service for interpreting multiple statement documents.

    Features:
    - Bounded concurrency
    - Per-document status tracking
    - Error isolation
    """

    def __init__(
        self,
        max_concurrency: Optional[int] = None,
        text_source: Optional[TextSource] = None,
    ):
        settings = get_settings()
        self._max_concurrency = max_concurrency or settings.max_concurrency
        self._text_source = text_source
        self._jobs: Dict[uuid.UUID, BatchJob] = {}

    def create_job(self, files: List[Path], config: Optional[ExtractionConfig] = None) -> BatchJob:
        """
        Create a new batch job.

        Args:
            files: Statement document paths, in the order results are reported.
            config: Interpretation options applied to every document.

        Returns:
            Created BatchJob with every document pending.
        """
        job = BatchJob(
            id=uuid.uuid4(),
            documents=[BatchDocument(path=Path(f)) for f in files],
            config=config or ExtractionConfig.from_settings(get_settings()),
        )
        self._jobs[job.id] = job

        logger.info("Batch job created", job_id=str(job.id), file_count=len(files))
        return job

    async def process_job(self, job_id: uuid.UUID) -> BatchResult:
        """
        Process a batch job.

        Args:
            job_id: ID of the job to process.

        Returns:
            BatchResult with a record for every successful document, in input order.
        """
        start_time = time.time()

        job = self._jobs.get(job_id)
        if not job:
            raise ValueError(f"Job {job_id} not found")

        total_files = len(job.documents)
        completed = 0
        semaphore = asyncio.Semaphore(self._max_concurrency)
        loop = asyncio.get_running_loop()

        async def process_document(document: BatchDocument) -> None:
            nonlocal completed
            async with semaphore:
                document.status = DocumentStatus.PROCESSING
                try:
                    record = await loop.run_in_executor(
                        None, self._interpret_file, document.path, job.config
                    )
                    document.record = record
                    document.accuracy = record.accuracy
                    document.status = DocumentStatus.COMPLETED
                except PassbookError as e:
                    document.status = DocumentStatus.ERROR
                    document.error = e.message
                    logger.warning(
                        "Batch document failed",
                        filename=document.filename,
                        error_code=e.error_code,
                        error=e.message,
                    )
                except Exception as e:
                    document.status = DocumentStatus.ERROR
                    document.error = str(e)
                    logger.error(
                        "Batch document failed unexpectedly",
                        filename=document.filename,
                        error=str(e),
                        exc_info=True,
                    )
                finally:
                    completed += 1
                    job.progress = completed / total_files

        await asyncio.gather(*(process_document(d) for d in job.documents))

        job.progress = 1.0
        job.completed_at = datetime.utcnow()
        processing_time = (time.time() - start_time) * 1000

        errors = [
            {"file": d.filename, "error": d.error or ""}
            for d in job.documents
            if d.status == DocumentStatus.ERROR
        ]
        result = BatchResult(
            job_id=job.id,
            total_files=total_files,
            successful=len(job.records),
            failed=len(errors),
            records=job.records,
            errors=errors,
            processing_time_ms=processing_time,
        )

        logger.info(
            "Batch job completed",
            job_id=str(job.id),
            successful=result.successful,
            failed=result.failed,
            time_ms=processing_time,
        )

        return result

    async def process_files(
        self,
        files: List[Path],
        config: Optional[ExtractionConfig] = None,
    ) -> BatchResult:
        """Create a job for ``files`` and process it."""
        job = self.create_job(files, config)
        return await self.process_job(job.id)

    def _interpret_file(self, path: Path, config: ExtractionConfig) -> StatementRecord:
        source = self._text_source or PdfTextSource(use_ocr=config.use_advanced_ocr)
        extracted = source.extract(path)
        return interpret_statement(extracted.text, path.name, config, extracted)

    def get_job(self, job_id: uuid.UUID) -> Optional[BatchJob]:
        """Get job by ID."""
        return self._jobs.get(job_id)

    def get_job_progress(self, job_id: uuid.UUID) -> Optional[float]:
        """Get job progress (0.0 to 1.0)."""
        job = self._jobs.get(job_id)
        return job.progress if job else None


def get_batch_processor(max_concurrency: Optional[int] = None) -> BatchProcessor:
    """Get BatchProcessor instance."""
    return BatchProcessor(max_concurrency=max_concurrency)
