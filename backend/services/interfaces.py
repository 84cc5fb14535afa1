"""
Capability interfaces for the diagnosis pipeline.
Concrete providers (HuggingFace embeddings, Chroma, OpenAI-compatible LLMs,
YouTube) implement these and are injected into the services that use them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from models.domain import KnowledgeDocument, VideoCandidate


# ============= Embedding Provider =============
class EmbeddingProvider(ABC):
    """Maps text to a fixed-dimension vector."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """Embed text. Raises ProviderError when unavailable."""
        pass


# ============= Knowledge Store =============
class KnowledgeStore(ABC):
    """Nearest-neighbour search over seeded repair knowledge."""

    @abstractmethod
    def similarity_search(
        self,
        query_vector: List[float],
        top_k: int,
        min_similarity: float
    ) -> List[KnowledgeDocument]:
        """Return up to top_k documents with similarity above min_similarity."""
        pass

    def count(self) -> int:
        return 0


# ============= Completion Provider =============
class CompletionProvider(ABC):
    """Maps a prompt to free text."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Complete a prompt. Raises ProviderError on failure."""
        pass


# ============= Video Search Provider =============
class VideoSearchProvider(ABC):
    """Keyword search over a video corpus."""

    @abstractmethod
    def search_videos(
        self,
        query: str,
        max_results: int = 5,
        duration_filter: str = "medium",
        safe_search: str = "strict"
    ) -> List[VideoCandidate]:
        """Search videos for one query. Raises ProviderError on failure."""
        pass

    def get_video_details(self, video_ids: List[str]) -> List[VideoCandidate]:
        """Return candidates enriched with statistics. Default: no enrichment."""
        return []


# ============= Media Storage =============
class MediaStorage(ABC):
    """Object storage for customer-provided photos and audio."""

    @abstractmethod
    def upload(self, folder: str, filename: str, content: bytes) -> str:
        """Store content and return a URL or path to it."""
        pass


# ============= Shop-management sink =============
class DiagnosticSink(ABC):
    """External shop-management system that receives diagnosis results."""

    name: str = "external"

    @abstractmethod
    def push_diagnostic(self, external_order_id: str, payload: Dict[str, Any]) -> None:
        """Push a diagnostic payload. Raises on failure."""
        pass
