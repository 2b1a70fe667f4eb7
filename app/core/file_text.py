"""Text extraction from uploaded knowledge and resume files."""

from dataclasses import dataclass
from io import BytesIO

import docx
import fitz

from app.core.logging import get_logger

logger = get_logger(__name__)

TEXT_EXTENSIONS = {".txt", ".md", ".markdown"}
DOCUMENT_EXTENSIONS = {".pdf", ".docx"}
ALLOWED_EXTENSIONS = TEXT_EXTENSIONS | DOCUMENT_EXTENSIONS

CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
}


class UnsupportedFileType(ValueError):
    """File extension is not one we can extract text from."""


@dataclass
class FileTextResult:
    """Result of text extraction from a file."""

    text: str
    extension: str
    detected_encoding: str | None = None


def get_extension(filename: str) -> str:
    """Extract lowercase file extension (with dot) from filename."""
    if "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


def strip_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[0] if "." in filename else filename


def _decode_bytes(raw_bytes: bytes) -> tuple[str, str]:
    """
    Attempt to decode bytes using fallback chain.

    Returns:
        Tuple of (decoded_text, encoding_name)

    Raises:
        ValueError: If no encoding works
    """
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        try:
            return raw_bytes.decode("utf-8-sig"), "utf-8-sig"
        except UnicodeDecodeError:
            pass

    for encoding in ("utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    raise ValueError(
        "Unable to decode file content. Supported encodings: UTF-8, UTF-8-BOM, Latin-1."
    )


def _pdf_text(raw_bytes: bytes) -> str:
    with fitz.open(stream=raw_bytes, filetype="pdf") as pdf:
        return "\n\n".join(page.get_text() for page in pdf)


def _docx_text(raw_bytes: bytes) -> str:
    document = docx.Document(BytesIO(raw_bytes))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text_from_upload(
    filename: str,
    raw_bytes: bytes,
    allowed_extensions: set[str] | None = None,
) -> FileTextResult:
    """
    Extract plain text from an uploaded file.

    Args:
        filename: Original filename (the extension picks the parser)
        raw_bytes: Raw file bytes
        allowed_extensions: Narrower set of accepted extensions

    Returns:
        FileTextResult with the extracted text

    Raises:
        UnsupportedFileType: If the extension is not accepted
        ValueError: If text content cannot be decoded
        Exception: If the PDF/DOCX parser fails
    """
    extension = get_extension(filename)
    allowed = allowed_extensions or ALLOWED_EXTENSIONS
    if extension not in allowed:
        raise UnsupportedFileType(f"Unsupported file type: {extension.lstrip('.') or 'unknown'}")

    if extension == ".pdf":
        text = _pdf_text(raw_bytes)
        encoding = None
    elif extension == ".docx":
        text = _docx_text(raw_bytes)
        encoding = None
    else:
        text, encoding = _decode_bytes(raw_bytes)

    logger.debug(f"Extracted {len(text)} chars from {filename}")
    return FileTextResult(text=text, extension=extension, detected_encoding=encoding)
