"""
Plain text from uploaded legal documents.

Uploads arrive base64 encoded (optionally as a browser data URL) with the
original file name; the extension picks the DOCX or PDF reader.
"""
import re
import base64
import binascii
import logging
from io import BytesIO

import docx
from pdfminer.high_level import extract_text as pdf_extract_text
from pdfminer.pdfparser import PDFSyntaxError

logger = logging.getLogger(__name__)

# Hard cap on extracted characters per upload
MAX_TEXT_LENGTH = 2_000_000

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]')
_SPACE_RUNS = re.compile(r' {2,}')
_BLANK_LINE_RUNS = re.compile(r'\n{3,}')


def _normalize_whitespace(text: str) -> str:
    """Drop control characters, unify newlines, collapse space and blank-line runs, trim lines."""
    text = _CONTROL_CHARS.sub('', text.replace('\r\n', '\n').replace('\r', '\n'))
    text = _SPACE_RUNS.sub(' ', text)
    text = '\n'.join(line.strip() for line in text.split('\n'))
    return _BLANK_LINE_RUNS.sub('\n\n', text).strip()


def _decode_base64(file_base64: str) -> bytes:
    # Browsers send data URLs ("data:application/pdf;base64,....")
    if file_base64.startswith('data:') and ',' in file_base64:
        file_base64 = file_base64.split(',', 1)[1]

    try:
        return base64.b64decode(file_base64, validate=False)
    except (binascii.Error, ValueError):
        raise RuntimeError("Uploaded file is not valid base64")


def _extract_docx_text(content: bytes) -> str:
    """Paragraph text followed by table rows (cells joined with " | ")."""
    try:
        document = docx.Document(BytesIO(content))
    except Exception as e:
        logger.error(f"Could not open DOCX upload: {type(e).__name__} - {str(e)}")
        raise RuntimeError("Failed to extract text from DOCX. The file may be corrupted or not a Word document.")

    lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    lines.extend(
        ' | '.join(cell.text.strip() for cell in row.cells if cell.text.strip())
        for table in document.tables
        for row in table.rows
        if any(cell.text.strip() for cell in row.cells)
    )

    if not lines:
        raise RuntimeError("DOCX document contains no text")

    logger.info(f"DOCX upload: {len(document.paragraphs)} paragraphs, {len(document.tables)} tables")
    return '\n'.join(lines)


def _extract_pdf_text(content: bytes) -> str:
    try:
        text = pdf_extract_text(BytesIO(content))
    except PDFSyntaxError as e:
        logger.error(f"Malformed PDF upload: {e}")
        raise RuntimeError("Failed to extract text from PDF. The file is not a valid PDF.")
    except Exception as e:
        logger.error(f"pdfminer failed on upload: {type(e).__name__} - {str(e)}")
        raise RuntimeError("Failed to extract text from PDF. The file may be encrypted or corrupted.")

    if not (text or '').strip():
        raise RuntimeError("PDF appears to be empty or contains only images")

    return text


_READERS = {
    '.docx': _extract_docx_text,
    '.pdf': _extract_pdf_text,
}


def extract_text_from_base64(file_base64: str, file_name: str) -> str:
    """
    Extract normalized text from a base64-encoded upload.

    Args:
        file_base64: File content, optionally as a data URL.
        file_name: Original file name; its extension selects the reader.

    Returns:
        Normalized text, at most MAX_TEXT_LENGTH characters.

    Raises:
        RuntimeError: If the format is unsupported or extraction fails.
    """
    suffix = '.' + file_name.rsplit('.', 1)[1].lower() if file_name and '.' in file_name else ''
    reader = _READERS.get(suffix)
    if reader is None:
        logger.warning(f"Rejected upload {file_name!r}: unsupported format")
        raise RuntimeError(f"Unsupported file format: {suffix or '(none)'}. Only DOCX and PDF files are supported.")

    text = _normalize_whitespace(reader(_decode_base64(file_base64)))

    if len(text) > MAX_TEXT_LENGTH:
        logger.warning(f"{file_name}: {len(text)} characters extracted, keeping the first {MAX_TEXT_LENGTH}")
        text = text[:MAX_TEXT_LENGTH]

    logger.info(f"{file_name}: extracted {len(text)} characters")
    return text
