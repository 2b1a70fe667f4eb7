"""Tests for file text extraction."""

from io import BytesIO

import docx
import fitz
import pytest

from app.core.file_text import (
    UnsupportedFileType,
    extract_text_from_upload,
    get_extension,
    strip_extension,
)


def test_extract_text_txt_utf8():
    """Test extracting text from a UTF-8 .txt file."""
    content = "Hello, world! This is a test file."

    result = extract_text_from_upload("test.txt", content.encode("utf-8"))

    assert result.text == content
    assert result.extension == ".txt"
    assert result.detected_encoding == "utf-8"


def test_extract_text_md_utf8():
    content = "# Markdown Header\n\nThis is **bold** text."
    result = extract_text_from_upload("readme.MD", content.encode("utf-8"))

    assert result.text == content
    assert result.extension == ".md"


def test_extract_text_utf8_bom():
    """Test extracting text from a UTF-8 file with BOM."""
    result = extract_text_from_upload("bom.txt", b"\xef\xbb\xbfHello with BOM")

    assert result.text == "Hello with BOM"
    assert result.detected_encoding == "utf-8-sig"


def test_extract_text_latin1_fallback():
    result = extract_text_from_upload("cafe.txt", "Café résumé".encode("latin-1"))

    assert result.text == "Café résumé"
    assert result.detected_encoding == "latin-1"


def test_extract_text_docx():
    document = docx.Document()
    document.add_paragraph("First paragraph")
    document.add_paragraph("Second paragraph")
    buffer = BytesIO()
    document.save(buffer)

    result = extract_text_from_upload("resume.docx", buffer.getvalue())

    assert "First paragraph\nSecond paragraph" in result.text
    assert result.detected_encoding is None


def test_extract_text_pdf():
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Hello PDF")
    raw = pdf.tobytes()
    pdf.close()

    result = extract_text_from_upload("resume.pdf", raw)

    assert "Hello PDF" in result.text
    assert result.extension == ".pdf"


def test_extract_text_unsupported_extension():
    with pytest.raises(UnsupportedFileType, match="Unsupported file type: exe"):
        extract_text_from_upload("virus.exe", b"MZ")

    with pytest.raises(UnsupportedFileType, match="unknown"):
        extract_text_from_upload("noextension", b"text")


def test_extract_text_narrowed_extensions():
    with pytest.raises(UnsupportedFileType):
        extract_text_from_upload("notes.txt", b"text", allowed_extensions={".pdf", ".docx"})


def test_get_and_strip_extension():
    assert get_extension("Report.Final.PDF") == ".pdf"
    assert get_extension("README") == ""
    assert strip_extension("my.notes.md") == "my.notes"
    assert strip_extension("README") == "README"
