"""
Custom exceptions for Passbook.

Provides a hierarchy of exceptions with error codes for consistent error handling.
Line-level and field-level misses inside the interpretation engine are never
raised; they are expressed as sentinels and empty results instead.
"""
from typing import Any, Dict, Optional


class PassbookError(Exception):
    """
    Base exception for all Passbook errors.

    Attributes:
        error_code: Unique error code (e.g., PBK-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "PBK-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Document Processing Errors (PBK-1XX)
class DocumentProcessingError(PassbookError):
    """A single document could not be processed."""
    error_code = "PBK-100"
    http_status = 422

    def __init__(self, message: str = "Failed to process document", **kwargs):
        super().__init__(message, **kwargs)


class TextAcquisitionError(DocumentProcessingError):
    """Text could not be obtained from a source document."""
    error_code = "PBK-101"

    def __init__(self, filename: str, message: Optional[str] = None, **kwargs):
        msg = message or f"Failed to extract text from {filename}"
        details = kwargs.pop("details", {})
        details["filename"] = filename
        super().__init__(msg, details=details, **kwargs)


class OCRError(TextAcquisitionError):
    """Optical character recognition failed."""
    error_code = "PBK-102"

    def __init__(self, filename: str, message: str = "Failed to extract text using OCR", **kwargs):
        super().__init__(filename, message, **kwargs)


# Export Errors (PBK-3XX)
class ExportError(PassbookError):
    """Error while exporting statement records."""
    error_code = "PBK-300"
    http_status = 400

    def __init__(self, message: str = "Failed to export statement data", **kwargs):
        super().__init__(message, **kwargs)


# Validation Errors (PBK-4XX)
class ValidationError(PassbookError):
    """Input validation failed."""
    error_code = "PBK-400"
    http_status = 400

    def __init__(self, message: str = "Validation failed", errors: Optional[list] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)
