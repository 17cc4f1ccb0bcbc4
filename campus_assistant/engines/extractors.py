"""
Format extractors - turn uploaded file bytes into raw text for segmentation

PDF via PyPDF2, DOCX via python-docx, TXT decoded as UTF-8.
Register another format with register_extractor().
"""

from io import BytesIO
from typing import Callable, Dict

import PyPDF2
from docx import Document as DocxDocument

from campus_assistant.config import Config
from campus_assistant.errors import ExtractionFailed, UnsupportedFormat
from campus_assistant.utils.logging_utils import get_logger

logger = get_logger()

Extractor = Callable[[bytes], str]


def normalize_extension(extension: str) -> str:
    return str(extension or "").strip().lower().lstrip(".")


def extract_pdf(file_bytes: bytes) -> str:
    reader = PyPDF2.PdfReader(BytesIO(file_bytes))
    full_text = ""
    has_text = False
    for i, page in enumerate(reader.pages, start=1):
        page_text = page.extract_text() or ""
        has_text = has_text or bool(page_text.strip())
        full_text += f"\n--- Page {i} ---\n{page_text}\n"
    # Scanned PDFs need OCR upstream
    if not has_text:
        raise ExtractionFailed("No extractable text in PDF")
    return full_text


def extract_docx(file_bytes: bytes) -> str:
    document = DocxDocument(BytesIO(file_bytes))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_txt(file_bytes: bytes) -> str:
    return file_bytes.decode("utf-8-sig")


def extract_doc(file_bytes: bytes) -> str:
    raise ExtractionFailed("DOC format not supported. Please convert to DOCX, PDF, or TXT format.")


EXTRACTORS: Dict[str, Extractor] = {
    "pdf": extract_pdf,
    "docx": extract_docx,
    "txt": extract_txt,
    "doc": extract_doc,
}


def register_extractor(extension: str, extractor: Extractor):
    """Add or replace the extractor for an extension and allow that extension."""
    ext = normalize_extension(extension)
    EXTRACTORS[ext] = extractor
    if ext not in Config.SUPPORTED_EXTENSIONS:
        Config.SUPPORTED_EXTENSIONS.append(ext)


def is_supported(extension: str) -> bool:
    ext = normalize_extension(extension)
    return ext in EXTRACTORS and ext in Config.SUPPORTED_EXTENSIONS


def extract_text(file_bytes: bytes, extension: str) -> str:
    """
    Extract raw text from file bytes.

    Raises:
        UnsupportedFormat: extension has no registered extractor
        ExtractionFailed: parser error or no text content
    """
    ext = normalize_extension(extension)
    if not is_supported(ext):
        raise UnsupportedFormat(f"Unsupported file format: {ext or '(none)'}")
    if not file_bytes:
        raise ExtractionFailed("Uploaded file is empty")

    try:
        text = EXTRACTORS[ext](file_bytes)
    except ExtractionFailed:
        raise
    except Exception as e:
        logger.warning(f"[Extractor] {ext} extraction failed: {e}")
        raise ExtractionFailed(f"Failed to extract {ext.upper()} content: {e}")

    if not text or not text.strip():
        raise ExtractionFailed(f"No text content found in {ext.upper()} file")
    return text
