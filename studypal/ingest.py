from __future__ import annotations

import io
import logging
from typing import List

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .performance_config import CHUNK_OVERLAP, CHUNK_SIZE

logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """Extract the text layer of a PDF given as raw bytes.

    Raises ValueError when the bytes are not a readable PDF or the PDF has no
    extractable text (scanned pages).
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "") for page in reader.pages]
    except PdfReadError as e:
        raise ValueError(f"Could not read PDF: {e}") from e
    text = "\n\n".join(p.strip() for p in pages if p.strip())
    if not text:
        raise ValueError("PDF contains no extractable text.")
    logger.info("extract_pdf_text: %d pages -> %d chars", len(pages), len(text))
    return text


def chunk_text(text: str, source: str) -> List[Document]:
    splitter = RecursiveCharacterTextSplitter(chunk_size=CHUNK_SIZE, chunk_overlap=CHUNK_OVERLAP)
    chunks = splitter.create_documents([text], metadatas=[{"source": source}])
    logger.debug("chunk_text: source=%s -> %d chunks", source, len(chunks))
    return chunks
