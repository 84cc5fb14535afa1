"""
Knowledge Store
Similarity search over seeded repair-knowledge articles.
ChromaKnowledgeStore persists to disk; InMemoryKnowledgeStore keeps vectors in numpy.
"""

import os
from typing import Any, Dict, List, Optional

import numpy as np
from langchain_community.vectorstores import Chroma

from models.domain import KnowledgeDocument
from services.interfaces import KnowledgeStore
from utils.errors import ProviderError
from utils.logger import setup_logger, log_success, log_error

logger = setup_logger(__name__)


def cosine_similarity(vec1: np.ndarray, vec2: np.ndarray) -> float:
    """
    Calculate cosine similarity between two vectors.

    Returns:
        Similarity in [-1, 1]; 0.0 if either vector is all zeros
    """
    denominator = np.linalg.norm(vec1) * np.linalg.norm(vec2)
    if denominator == 0:
        return 0.0
    return float(np.dot(vec1, vec2) / denominator)


class InMemoryKnowledgeStore(KnowledgeStore):
    """Brute-force cosine search over documents held in memory."""

    def __init__(self, documents: Optional[List[KnowledgeDocument]] = None):
        self.documents: List[KnowledgeDocument] = list(documents or [])

    def add_documents(self, embedded_docs: List[Dict[str, Any]]) -> int:
        """Store documents shaped like EmbeddingService.embed_documents output."""
        for doc in embedded_docs:
            metadata = doc.get('metadata', {})
            self.documents.append(KnowledgeDocument(
                title=metadata.get('title', ''),
                category=metadata.get('category', ''),
                content=metadata.get('content', doc.get('page_content', '')),
                embedding=list(doc['embedding'])
            ))
        return len(embedded_docs)

    def reset(self):
        self.documents = []

    def count(self) -> int:
        return len(self.documents)

    def similarity_search(
        self,
        query_vector: List[float],
        top_k: int,
        min_similarity: float
    ) -> List[KnowledgeDocument]:
        try:
            query = np.asarray(query_vector, dtype=float)
            scored = []
            for doc in self.documents:
                similarity = cosine_similarity(query, np.asarray(doc.embedding, dtype=float))
                if similarity > min_similarity:
                    scored.append((similarity, doc))
        except ValueError as e:
            # Dimension mismatch between query and stored vectors
            raise ProviderError(f"Knowledge search failed: {e}", provider="knowledge_store") from e

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            KnowledgeDocument(
                title=doc.title,
                category=doc.category,
                content=doc.content,
                embedding=doc.embedding,
                similarity=round(similarity, 4)
            )
            for similarity, doc in scored[:top_k]
        ]


class ChromaKnowledgeStore(KnowledgeStore):
    """ChromaDB-backed knowledge store using cosine distance."""

    def __init__(
        self,
        embedding_function=None,
        collection_name: str = None,
        persist_directory: str = None
    ):
        """
        Initialize or load the Chroma collection.

        Args:
            embedding_function: LangChain embeddings object (only needed for text queries)
            collection_name: Name of the ChromaDB collection
            persist_directory: Directory to persist the vector database
        """
        self.collection_name = collection_name or os.getenv("KNOWLEDGE_COLLECTION", "repair_knowledge")
        self.persist_directory = persist_directory or os.getenv("KNOWLEDGE_PERSIST_DIR", "data/vector_store")

        os.makedirs(self.persist_directory, exist_ok=True)

        try:
            self.vectorstore = Chroma(
                collection_name=self.collection_name,
                embedding_function=embedding_function,
                persist_directory=self.persist_directory,
                collection_metadata={"hnsw:space": "cosine"}
            )
            log_success(logger, f"ChromaDB initialized ({self.count()} documents in {self.collection_name})")
        except Exception as e:
            log_error(logger, f"Error initializing ChromaDB: {e}")
            raise

    def count(self) -> int:
        return self.vectorstore._collection.count()

    def add_documents(self, embedded_docs: List[Dict[str, Any]]) -> int:
        """
        Store documents with precomputed embeddings.

        Args:
            embedded_docs: Dicts with page_content, metadata and embedding
                           (as produced by EmbeddingService.embed_documents)

        Returns:
            Number of documents stored
        """
        if not embedded_docs:
            return 0

        self.vectorstore._collection.upsert(
            ids=[doc['metadata'].get('doc_id', str(i)) for i, doc in enumerate(embedded_docs)],
            embeddings=[doc['embedding'] for doc in embedded_docs],
            documents=[doc['page_content'] for doc in embedded_docs],
            metadatas=[doc['metadata'] for doc in embedded_docs]
        )
        return len(embedded_docs)

    def similarity_search(
        self,
        query_vector: List[float],
        top_k: int,
        min_similarity: float
    ) -> List[KnowledgeDocument]:
        try:
            results = self.vectorstore.similarity_search_by_vector_with_relevance_scores(
                embedding=query_vector,
                k=top_k
            )
        except Exception as e:
            raise ProviderError(f"Knowledge search failed: {e}", provider="knowledge_store") from e

        documents = []
        for doc, distance in results:
            # Chroma returns cosine distance; lower is closer
            similarity = 1.0 - float(distance)
            if similarity <= min_similarity:
                continue
            documents.append(KnowledgeDocument(
                title=doc.metadata.get('title', ''),
                category=doc.metadata.get('category', ''),
                content=doc.metadata.get('content', doc.page_content),
                similarity=round(similarity, 4)
            ))
        return documents

    def reset(self):
        """Delete every document in the collection."""
        existing = self.vectorstore._collection.get()
        if existing and existing.get('ids'):
            self.vectorstore._collection.delete(ids=existing['ids'])
