"""
Embedding Service
Converts symptom text and knowledge articles into vector embeddings.
Pure transformation service - no database handling.
"""

import os
from typing import List, Dict, Any
from langchain_core.documents import Document
from langchain_community.embeddings import HuggingFaceEmbeddings

from services.interfaces import EmbeddingProvider
from utils.errors import ProviderError
from utils.logger import setup_logger, log_success

logger = setup_logger(__name__)


class EmbeddingService(EmbeddingProvider):
    """Service for converting text into vector embeddings."""

    def __init__(
        self,
        model_name: str = None,
        device: str = "cpu"
    ):
        """
        Initialize the embedding service.

        Args:
            model_name: HuggingFace model name for embeddings (defaults to EMBEDDING_MODEL env var)
                       Options:
                       - "all-MiniLM-L6-v2" (384 dim, fast, recommended)
                       - "all-mpnet-base-v2" (768 dim, more accurate, slower)
            device: 'cpu' or 'cuda' (if GPU available)
        """
        self.model_name = model_name or os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
        self.device = device

        logger.info(f"Loading embedding model: {self.model_name}...")
        self.embeddings = HuggingFaceEmbeddings(
            model_name=self.model_name,
            model_kwargs={'device': device},
            encode_kwargs={'normalize_embeddings': True}  # For cosine similarity
        )
        log_success(logger, f"Embedding model loaded ({self.model_name})")

    def embed(self, text: str) -> List[float]:
        """
        Embed symptom text for knowledge retrieval.

        Raises:
            ProviderError: If the model fails to produce a vector
        """
        try:
            return self.embeddings.embed_query(text)
        except Exception as e:
            raise ProviderError(f"Embedding failed: {e}", provider="embedding") from e

    def embed_documents(self, documents: List[Document]) -> List[Dict[str, Any]]:
        """
        Embed a list of Document objects.

        Args:
            documents: List of LangChain Document objects

        Returns:
            List of dicts containing:
                - page_content: Original text
                - metadata: Original metadata
                - embedding: Vector embedding (list of floats)
        """
        if not documents:
            return []

        logger.info(f"Embedding {len(documents)} documents...")

        texts = [doc.page_content for doc in documents]
        embeddings = self.embeddings.embed_documents(texts)

        embedded_docs = []
        for doc, embedding in zip(documents, embeddings):
            embedded_docs.append({
                "page_content": doc.page_content,
                "metadata": doc.metadata,
                "embedding": embedding
            })

        log_success(logger, f"Embedded {len(embedded_docs)} documents")
        return embedded_docs

    def get_embedding_dimension(self) -> int:
        """
        Get the dimension of embeddings produced by this model.

        Returns:
            Embedding dimension (e.g., 384 for all-MiniLM-L6-v2)
        """
        return len(self.embed("test"))

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the embedding model."""
        return {
            "model_name": self.model_name,
            "device": self.device,
            "embedding_dimension": self.get_embedding_dimension(),
            "normalized": True
        }
