"""
Document text extraction
Turns uploaded resume/JD blobs (.pdf, .docx, .txt) into plain text.
"""

import io
import logging
from typing import Optional, Protocol

import PyPDF2
from docx import Document

from errors import TextExtractionError
from schemas import ResumeBlob
from timeouts import call_with_timeout

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'pdf', 'docx', 'txt'}


class TextExtractor(Protocol):
    def extract_text(self, blob: ResumeBlob) -> str: ...


def file_extension(filename: str) -> str:
    return filename.rsplit('.', 1)[1].lower() if filename and '.' in filename else ''


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed"""
    return file_extension(filename) in ALLOWED_EXTENSIONS


def extract_text_from_pdf(file_stream) -> str:
    """Extract text from PDF file"""
    try:
        pdf_reader = PyPDF2.PdfReader(file_stream)
        text = ""
        for page in pdf_reader.pages:
            text += (page.extract_text() or "") + "\n"
        return text
    except Exception as e:
        raise TextExtractionError(f"Error reading PDF: {str(e)}") from e


def extract_text_from_docx(file_stream) -> str:
    """Extract text from DOCX file"""
    try:
        doc = Document(file_stream)
        text = ""
        for paragraph in doc.paragraphs:
            text += paragraph.text + "\n"
        return text
    except Exception as e:
        raise TextExtractionError(f"Error reading DOCX: {str(e)}") from e


def extract_text_from_txt(content: bytes) -> str:
    try:
        return content.decode('utf-8')
    except UnicodeDecodeError as e:
        raise TextExtractionError(f"Error reading text file: {str(e)}") from e


class DocumentTextExtractor:
    """Default extractor dispatching on the blob's file extension"""

    def extract_text(self, blob: ResumeBlob) -> str:
        extension = file_extension(blob.filename)

        if extension == 'pdf':
            text = extract_text_from_pdf(io.BytesIO(blob.content))
        elif extension == 'docx':
            text = extract_text_from_docx(io.BytesIO(blob.content))
        elif extension == 'txt':
            text = extract_text_from_txt(blob.content)
        else:
            raise TextExtractionError(f"Unsupported file format: {blob.filename}")

        if not text.strip():
            raise TextExtractionError(f"No text could be extracted from {blob.filename}")
        return text


class TimedTextExtractor:
    """Bound every extraction by ``timeout`` seconds"""

    def __init__(self, extractor: Optional[TextExtractor] = None, timeout: Optional[float] = 30):
        self.extractor = extractor or DocumentTextExtractor()
        self.timeout = timeout

    def extract_text(self, blob: ResumeBlob) -> str:
        logger.debug(f"Extracting text from {blob.filename}")
        return call_with_timeout(self.extractor.extract_text, self.timeout, blob,
                                 error_class=TextExtractionError)
