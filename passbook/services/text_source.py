"""
Text acquisition for statement PDFs.

Uses pdfplumber for digitally authored PDFs and falls back to Tesseract OCR
when a document carries too little embedded text (scanned statements).
This is the upstream collaborator of the engine: it produces
``ExtractedText(text, method, confidence)`` and nothing else.
"""
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

import pdfplumber
import structlog

from passbook.config import Settings, get_settings
from passbook.engine.models import ExtractedText
from passbook.exceptions import OCRError, TextAcquisitionError

logger = structlog.get_logger(__name__)

DIGITAL_METHOD = "Digital Text Extraction"
OCR_METHOD = "Advanced OCR"

DIGITAL_CONFIDENCE = 0.9
OCR_DEFAULT_CONFIDENCE = 0.6

# Characters that appear on statement rows; anything else is OCR noise.
OCR_CHAR_WHITELIST = "0123456789.,/-: ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

# Page segmentation mode 6: assume a single uniform block of text.
# pytesseract splits this with shlex, so the whitelist is quoted for its space.
TESSERACT_CONFIG = f'--psm 6 -c "tessedit_char_whitelist={OCR_CHAR_WHITELIST}"'


class TextSource(Protocol):
    """Anything that can turn a document into plain text."""

    def extract(self, path: Path) -> ExtractedText:
        ...


class PdfTextSource:
    """
    PDF text source with OCR fallback.

    Digital text is preferred. When it is shorter than
    ``min_digital_text_chars`` (or could not be read at all) the first
    ``ocr_page_limit`` pages are rendered and passed through Tesseract.
    """

    def __init__(self, settings: Optional[Settings] = None, use_ocr: Optional[bool] = None):
        self._settings = settings or get_settings()
        self._use_ocr = self._settings.use_advanced_ocr if use_ocr is None else use_ocr

    def extract(self, path: Path) -> ExtractedText:
        """
        Extract text from a statement PDF.

        Args:
            path: Path to the PDF file.

        Returns:
            ExtractedText with text, method label and confidence.

        Raises:
            TextAcquisitionError: Neither digital extraction nor OCR produced text.
        """
        path = Path(path)
        logger.info("Extracting statement text", filename=path.name)

        digital: Optional[ExtractedText] = None
        try:
            digital = self._extract_digital(path)
        except Exception as e:
            logger.warning("Digital text extraction failed", filename=path.name, error=str(e))

        if digital is not None and len(digital.text.strip()) > self._settings.min_digital_text_chars:
            return digital

        if not self._use_ocr:
            if digital is None:
                raise TextAcquisitionError(path.name)
            digital.warnings.append("Little embedded text found and OCR is disabled")
            return digital

        if not self._ocr_available():
            if digital is None:
                raise OCRError(path.name, "Tesseract OCR is not available")
            digital.warnings.append("Little embedded text found and Tesseract is not available")
            return digital

        return self._extract_ocr(path)

    def _extract_digital(self, path: Path) -> ExtractedText:
        page_texts: List[str] = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                page_texts.append(page.extract_text() or "")

        text = "".join(page_text + "\n" for page_text in page_texts)
        return ExtractedText(
            text=text,
            method=DIGITAL_METHOD,
            confidence=DIGITAL_CONFIDENCE,
            page_count=len(page_texts),
        )

    def _ocr_available(self) -> bool:
        """Check if Tesseract OCR is available."""
        try:
            import pytesseract

            if self._settings.tesseract_cmd:
                pytesseract.pytesseract.tesseract_cmd = self._settings.tesseract_cmd

            pytesseract.get_tesseract_version()
            return True
        except Exception as e:
            logger.warning("Tesseract OCR not available", error=str(e))
            return False

    def _extract_ocr(self, path: Path) -> ExtractedText:
        logger.info("Running OCR", filename=path.name)

        page_texts: List[str] = []
        total_confidence = 0.0
        scored_pages = 0

        try:
            with pdfplumber.open(path) as pdf:
                for page in pdf.pages[: self._settings.ocr_page_limit]:
                    page_text, page_confidence = self._ocr_page(page)
                    page_texts.append(page_text)
                    if page_confidence is not None:
                        total_confidence += page_confidence
                        scored_pages += 1
        except Exception as e:
            logger.error("OCR extraction failed", filename=path.name, error=str(e))
            raise OCRError(path.name) from e

        confidence = total_confidence / scored_pages / 100 if scored_pages else OCR_DEFAULT_CONFIDENCE

        return ExtractedText(
            text="".join(page_text + "\n" for page_text in page_texts),
            method=OCR_METHOD,
            confidence=confidence,
            page_count=len(page_texts),
        )

    def _ocr_page(self, page) -> Tuple[str, Optional[float]]:
        """
        OCR one pdfplumber page.

        Returns:
            Tuple of (page text with line breaks preserved, mean word
            confidence on a 0-100 scale or None when nothing was recognised).
        """
        import pytesseract

        image = page.to_image(resolution=int(72 * self._settings.ocr_scale)).original
        data = pytesseract.image_to_data(
            image,
            config=TESSERACT_CONFIG,
            output_type=pytesseract.Output.DICT,
        )

        lines: dict = {}
        confidences: List[float] = []
        for i, word in enumerate(data["text"]):
            if not word.strip():
                continue
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)
            conf = float(data["conf"][i])
            if conf >= 0:
                confidences.append(conf)

        text = "\n".join(" ".join(words) for words in lines.values())
        page_confidence = sum(confidences) / len(confidences) if confidences else None
        return text, page_confidence
