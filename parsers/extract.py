import io
import logging
import re
from pathlib import Path
from typing import Optional, Tuple

import docx
import fitz
from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

SUPPORTED_TYPES = {
    PDF_MIME: "pdf",
    DOCX_MIME: "docx",
    TEXT_MIME: "text",
}

EXTENSIONS = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".txt": "text",
    ".text": "text",
}


class UnsupportedFileType(ValueError):
    """Raised for uploads that are not PDF, DOCX or plain text."""


class ExtractionError(ValueError):
    """Raised when a supported file yields no usable text."""


def detect_file_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Map an upload to 'pdf', 'docx' or 'text', MIME type first, extension second."""
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in SUPPORTED_TYPES:
        return SUPPORTED_TYPES[mime]

    extension = Path(filename or "").suffix.lower()
    if extension in EXTENSIONS:
        return EXTENSIONS[extension]

    raise UnsupportedFileType(
        "Unsupported file type. Please upload PDF, DOCX, or plain text files."
    )


def read_pdf(data: bytes) -> str:
    """Extract text from PDF bytes using PyMuPDF primarily, fallback to PyPDF2."""
    text = ""
    opened = False

    try:
        doc = fitz.open(stream=data, filetype="pdf")
        text = "\n".join(page.get_text("text") or "" for page in doc)
        doc.close()
        opened = True
        if text.strip():
            logger.info("Extracted %d characters via PyMuPDF", len(text))
            return text
    except Exception as e:
        logger.warning("PyMuPDF extraction failed: %s", e)

    try:
        reader = PdfReader(io.BytesIO(data))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
        if text.strip():
            logger.info("Extracted %d characters via PyPDF2 fallback", len(text))
            return text
    except Exception as e:
        if opened:
            # valid PDF without a text layer, e.g. a scan
            logger.warning("PyPDF2 fallback failed on a text-less PDF: %s", e)
            return ""
        logger.error("PyPDF2 extraction failed: %s", e)
        raise ExtractionError(
            "Failed to parse PDF file. Please ensure the file is not corrupted "
            "or try converting to DOCX format."
        ) from e

    return text


def read_docx(data: bytes) -> str:
    """Extract text from DOCX paragraphs and tables"""
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        logger.error("Error reading DOCX: %s", e)
        raise ExtractionError(
            "Failed to parse DOCX file. Please ensure the file is not corrupted."
        ) from e

    lines = [para.text for para in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" ".join(cell.text for cell in row.cells))
    return "\n".join(lines)


def read_txt(data: bytes) -> str:
    """Decode plain text, trying common encodings in turn"""
    for encoding in ("utf-8", "latin-1", "cp1252"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ExtractionError("Unable to decode file with supported encodings")


def clean_text(text: str) -> str:
    text = text.replace("\r\n", "\n")
    text = re.sub(r"[^\S\r\n]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


READERS = {
    "pdf": read_pdf,
    "docx": read_docx,
    "text": read_txt,
}


def extract_file_content(
    data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None
) -> Tuple[str, str]:
    """
    Extract normalized text from an uploaded resume file.

    Args:
        data: Raw file bytes
        filename: Original file name, used when the MIME type is missing
        content_type: MIME type reported by the client

    Returns:
        Tuple of (text, file_type) where file_type is 'pdf', 'docx' or 'text'
    """
    file_type = detect_file_type(filename, content_type)
    logger.info("Extracting %s content from %s", file_type, filename or "<upload>")

    text = clean_text(READERS[file_type](data))
    if not text:
        raise ExtractionError(
            "No readable content found in the file. Please ensure the file contains text."
        )
    return text, file_type
