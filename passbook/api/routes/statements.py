"""
Statement API routes.

Interprets statement text or uploaded statement PDFs, and exports
interpreted statements to an Excel workbook.
"""
import shutil
import tempfile
from pathlib import Path
from typing import List

import structlog
from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import FileResponse, Response

from passbook.config import get_settings
from passbook.engine import interpret_statement
from passbook.exceptions import ValidationError
from passbook.schemas.statements import (
    BatchErrorResponse,
    BatchResponse,
    ExportRequest,
    ExtractionOptions,
    InterpretRequest,
    StatementResponse,
)
from passbook.services.batch_processor import BatchResult, get_batch_processor
from passbook.services.export import export_filename, get_workbook_exporter

logger = structlog.get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def validate_pdf_file(file: UploadFile) -> None:
    """
    Validate an uploaded statement.

    Raises:
        ValidationError: Wrong extension or file too large.
    """
    if file.filename and not file.filename.lower().endswith(".pdf"):
        raise ValidationError(
            "Only .pdf files are accepted",
            errors=[{"file": file.filename, "message": "Invalid file extension"}],
        )

    file.file.seek(0, 2)
    file_size = file.file.tell()
    file.file.seek(0)

    max_size = get_settings().max_upload_size_bytes
    if file_size > max_size:
        raise ValidationError(
            f"File size {file_size} exceeds maximum allowed {max_size}",
            errors=[{"file": file.filename, "message": "File too large"}],
        )


def save_uploaded_file(file: UploadFile, upload_dir: Path, index: int) -> Path:
    """
    Save an uploaded file under ``upload_dir``, keeping its original name.

    Each file gets its own numbered subdirectory so repeated names do not clash.
    """
    name = Path(file.filename).name if file.filename else f"statement-{index + 1}.pdf"
    target_dir = upload_dir / str(index)
    target_dir.mkdir(parents=True, exist_ok=True)
    file_path = target_dir / name

    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    return file_path


async def process_uploads(files: List[UploadFile], options: ExtractionOptions) -> BatchResult:
    """Validate, stage and batch-process uploaded statement PDFs."""
    for file in files:
        validate_pdf_file(file)

    with tempfile.TemporaryDirectory(prefix="passbook-") as tmpdir:
        paths = [save_uploaded_file(f, Path(tmpdir), i) for i, f in enumerate(files)]
        logger.info("Statements uploaded", file_count=len(paths))
        return await get_batch_processor().process_files(paths, options.to_config())


def upload_options(
    multi_pass_extraction: bool,
    confidence_threshold: float,
    use_advanced_ocr: bool,
) -> ExtractionOptions:
    return ExtractionOptions(
        multi_pass_extraction=multi_pass_extraction,
        confidence_threshold=confidence_threshold,
        use_advanced_ocr=use_advanced_ocr,
    )


@router.post("/statements/interpret", response_model=StatementResponse)
async def interpret(request: InterpretRequest) -> StatementResponse:
    """
    Interpret statement text.

    Returns the structured record with per-transaction confidences. Rows
    below ``options.confidence_threshold`` are flagged, not removed.
    """
    record = interpret_statement(request.text, request.filename, request.options.to_config())
    return StatementResponse.from_record(record, request.options.confidence_threshold)


@router.post("/statements/upload", response_model=BatchResponse)
async def upload_statements(
    files: List[UploadFile] = File(..., description="Statement PDFs to process"),
    multi_pass_extraction: bool = Form(True),
    confidence_threshold: float = Form(0.7, ge=0.0, le=1.0),
    use_advanced_ocr: bool = Form(True),
) -> BatchResponse:
    """
    Upload and interpret statement PDFs.

    Each PDF is read digitally, with OCR fallback for scans. A document that
    cannot be read is reported under ``errors``; the others are still returned.
    """
    options = upload_options(multi_pass_extraction, confidence_threshold, use_advanced_ocr)
    result = await process_uploads(files, options)

    return BatchResponse(
        job_id=str(result.job_id),
        total_files=result.total_files,
        successful=result.successful,
        failed=result.failed,
        statements=[
            StatementResponse.from_record(record, options.confidence_threshold)
            for record in result.records
        ],
        errors=[BatchErrorResponse(**error) for error in result.errors],
        processing_time_ms=result.processing_time_ms,
    )


@router.post("/statements/upload/export")
async def upload_and_export(
    files: List[UploadFile] = File(..., description="Statement PDFs to process"),
    multi_pass_extraction: bool = Form(True),
    use_advanced_ocr: bool = Form(True),
) -> FileResponse:
    """
    Upload statement PDFs and download the Summary/Transactions workbook.

    The workbook is also kept in the configured export directory. Documents
    that failed are left out and counted in ``X-Failed-Documents``.
    """
    options = upload_options(multi_pass_extraction, 0.7, use_advanced_ocr)
    result = await process_uploads(files, options)

    path = get_workbook_exporter().export(result.records)

    return FileResponse(
        path,
        media_type=XLSX_MEDIA_TYPE,
        filename=path.name,
        headers={"X-Failed-Documents": str(result.failed)},
    )


@router.post("/statements/export")
async def export(request: ExportRequest) -> Response:
    """Interpret each statement and return the Summary/Transactions workbook."""
    records = [
        interpret_statement(s.text, s.filename, s.options.to_config())
        for s in request.statements
    ]
    content = get_workbook_exporter().to_bytes(records)

    filename = export_filename()
    logger.info("Export generated", documents=len(records), filename=filename)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
