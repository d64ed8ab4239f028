"""
Workbook export for interpreted statements.

Writes a two-sheet Excel workbook: a "Summary" sheet with one row per
document and a "Transactions" sheet with one row per transaction.
"""
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import structlog
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from passbook.config import get_settings
from passbook.engine.models import StatementRecord
from passbook.exceptions import ExportError

logger = structlog.get_logger(__name__)


SUMMARY_COLUMNS = (
    "File Name",
    "Bank Name",
    "Account Number",
    "Account Holder",
    "Statement Period",
    "Total Transactions",
    "Accuracy (%)",
    "Processing Method",
)

TRANSACTION_COLUMNS = (
    "File Name",
    "Bank Name",
    "Account Number",
    "Date",
    "Description",
    "Amount",
    "Type",
    "Balance",
    "Reference",
    "Confidence (%)",
)

# =============================================================================
# STYLES
# =============================================================================

HEADER_FONT = Font(bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill("solid", fgColor="1F4E79")
HEADER_BORDER = Border(bottom=Side(style="thin", color="000000"))
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

AMOUNT_FORMAT = "#,##0.00"
MAX_COLUMN_WIDTH = 60


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def summary_rows(records: Sequence[StatementRecord]) -> List[Dict[str, Any]]:
    """One row per document, keyed by summary column name."""
    return [
        {
            "File Name": r.filename,
            "Bank Name": r.bank_name,
            "Account Number": r.account_number,
            "Account Holder": r.account_holder,
            "Statement Period": r.statement_period,
            "Total Transactions": r.transaction_count,
            "Accuracy (%)": round_half_up(r.accuracy),
            "Processing Method": r.processing_method,
        }
        for r in records
    ]


def transaction_rows(records: Sequence[StatementRecord]) -> List[Dict[str, Any]]:
    """One row per transaction across all documents, in document order."""
    rows = []
    for r in records:
        for t in r.transactions:
            rows.append({
                "File Name": r.filename,
                "Bank Name": r.bank_name,
                "Account Number": r.account_number,
                "Date": t.date.isoformat(),
                "Description": t.description,
                "Amount": float(t.amount),
                "Type": t.type.value.upper(),
                "Balance": float(t.balance) if t.balance is not None else "",
                "Reference": t.reference or "",
                "Confidence (%)": round_half_up(t.confidence * 100),
            })
    return rows


def export_filename(timestamp: Optional[datetime] = None) -> str:
    stamp = (timestamp or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"bank-statements-{stamp}.xlsx"


class WorkbookExporter:
    """Builds the Summary/Transactions workbook for a set of records."""

    def build(self, records: Sequence[StatementRecord]) -> Workbook:
        """
        Build the export workbook.

        Args:
            records: Interpreted statements, in the order they should appear.

        Returns:
            OpenPyXL Workbook object.

        Raises:
            ExportError: No records were supplied.
        """
        if not records:
            raise ExportError("No data to export")

        wb = Workbook()
        summary = wb.active
        summary.title = "Summary"
        self._write_sheet(summary, SUMMARY_COLUMNS, summary_rows(records))

        transactions = wb.create_sheet("Transactions")
        self._write_sheet(transactions, TRANSACTION_COLUMNS, transaction_rows(records))

        for row in transactions.iter_rows(min_row=2):
            for cell in (row[5], row[7]):
                if isinstance(cell.value, float):
                    cell.number_format = AMOUNT_FORMAT

        return wb

    def export(
        self,
        records: Sequence[StatementRecord],
        output_dir: Optional[Path] = None,
        timestamp: Optional[datetime] = None,
    ) -> Path:
        """
        Write the export workbook to disk.

        Args:
            records: Interpreted statements.
            output_dir: Target directory; defaults to the configured export dir.
            timestamp: Time used in the file name; defaults to now.

        Returns:
            Path to the saved file.
        """
        wb = self.build(records)

        output_dir = Path(output_dir or get_settings().export_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / export_filename(timestamp)

        try:
            wb.save(output_path)
        except OSError as e:
            raise ExportError(f"Failed to write {output_path.name}", details={"error": str(e)}) from e

        logger.info(
            "Workbook exported",
            path=str(output_path),
            documents=len(records),
            transactions=sum(r.transaction_count for r in records),
        )
        return output_path

    def to_bytes(self, records: Sequence[StatementRecord]) -> bytes:
        """Serialize the export workbook in memory."""
        buffer = BytesIO()
        self.build(records).save(buffer)
        return buffer.getvalue()

    def _write_sheet(self, ws, columns: Sequence[str], rows: List[Dict[str, Any]]) -> None:
        ws.append(list(columns))
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.border = HEADER_BORDER
            cell.alignment = HEADER_ALIGNMENT

        for row in rows:
            ws.append([row[column] for column in columns])

        ws.freeze_panes = "A2"

        for col_idx, column in enumerate(columns, start=1):
            width = max([len(column)] + [len(str(row[column])) for row in rows])
            ws.column_dimensions[get_column_letter(col_idx)].width = min(width + 2, MAX_COLUMN_WIDTH)


def get_workbook_exporter() -> WorkbookExporter:
    """Get WorkbookExporter instance."""
    return WorkbookExporter()
