"""
Text extraction from uploaded PDF, DOCX and plain-text files.
"""

import asyncio
import io
import logging
from functools import partial
from typing import Callable, Dict

import docx2txt
from pypdf import PdfReader

from ...config.processor import PDF_MIME_TYPE, DOCX_MIME_TYPE, TEXT_MIME_TYPE
from ...models.records import ParsedDocument
from ...utils.errors import ExtractionFailed, UnsupportedFileType
from ...utils.text import strip_null_bytes, title_from_filename

logger = logging.getLogger(__name__)

def _decode_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    text = ""
    for page in reader.pages:
        text += (page.extract_text() or "") + "\n"
    return text

def _decode_docx(data: bytes) -> str:
    return docx2txt.process(io.BytesIO(data)) or ""

def _decode_text(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')

class TextExtractor:
    """Turns uploaded bytes into a ParsedDocument.

    Only three MIME types are accepted. Anything else is rejected with
    UnsupportedFileType before a decoder is touched.
    """

    def __init__(self):
        self.decoders: Dict[str, Callable[[bytes], str]] = {
            PDF_MIME_TYPE: _decode_pdf,
            DOCX_MIME_TYPE: _decode_docx,
            TEXT_MIME_TYPE: _decode_text,
        }
        self.format_names = {
            PDF_MIME_TYPE: "PDF",
            DOCX_MIME_TYPE: "DOCX",
            TEXT_MIME_TYPE: "text",
        }

    def supports(self, mime_type: str) -> bool:
        return mime_type in self.decoders

    async def extract(self, file_bytes: bytes, mime_type: str, filename: str) -> ParsedDocument:
        """Extract, clean and trim the text of one uploaded file."""
        decoder = self.decoders.get(mime_type)
        if decoder is None:
            raise UnsupportedFileType(mime_type)

        logger.info(f"Processing file: {filename}, type: {mime_type}, size: {len(file_bytes)} bytes")

        # Decoders are CPU-bound; keep them off the event loop
        loop = asyncio.get_running_loop()
        try:
            raw_text = await loop.run_in_executor(None, partial(decoder, file_bytes))
        except Exception as e:
            format_name = self.format_names[mime_type]
            logger.error(f"{format_name} parsing error for {filename}: {str(e)}")
            raise ExtractionFailed(f"{format_name} parsing failed: {str(e)}") from e

        content = strip_null_bytes(raw_text).strip()
        logger.info(f"Extracted {len(content)} characters from {filename}")

        return ParsedDocument(
            title=title_from_filename(filename),
            filename=filename,
            content=content
        )
