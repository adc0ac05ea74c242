from typing import List
import logging
import uuid
import warnings
from langchain_openai import OpenAIEmbeddings
from langchain_community.vectorstores import Chroma
from langchain_core.documents import Document
from .config import EMBEDDING_MODEL, require_api_key
from .performance_config import DEFAULT_RETRIEVAL_K, MAX_RETRIEVAL_K

# Suppress deprecation warnings for better performance
warnings.filterwarnings("ignore", category=DeprecationWarning, module="langchain")
warnings.filterwarnings("ignore", message=".*Chroma.*deprecated.*", category=DeprecationWarning)

logger = logging.getLogger(__name__)

# Global embeddings instance to avoid repeated initialization
_embeddings_cache = None

def _get_embeddings():
    """Get cached embeddings instance"""
    global _embeddings_cache
    if _embeddings_cache is None:
        _embeddings_cache = OpenAIEmbeddings(
            model=EMBEDDING_MODEL,
            openai_api_key=require_api_key()
        )
    return _embeddings_cache


def build_source_index(chunks: List[Document]):
    """Index uploaded source chunks in a fresh in-memory collection.

    Every upload gets its own collection name so a new PDF never mixes with
    passages from the previous one.
    """
    if not chunks:
        raise ValueError("Nothing to index.")
    return Chroma.from_documents(
        documents=chunks,
        embedding=_get_embeddings(),
        collection_name=f"source_{uuid.uuid4().hex[:12]}",
    )


def retrieve_context(index, query: str, k: int = DEFAULT_RETRIEVAL_K) -> str:
    query = (query or "").strip()
    if index is None or not query:
        return ""
    k = max(1, min(int(k), MAX_RETRIEVAL_K))
    try:
        results = index.similarity_search(query, k=k)
    except Exception:
        logger.exception("retriever: similarity search failed for query=%r", query)
        return ""

    text = "\n\n".join([r.page_content for r in results])
    logger.debug("retriever: query=%r k=%d results=%d text_len=%d", query, k, len(results), len(text))
    return text
