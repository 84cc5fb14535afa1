"""
Context Builder
Retrieves repair knowledge relevant to a symptom description: Embed → Search → Format.
"""

from prompts import format_knowledge_context
from services.interfaces import EmbeddingProvider, KnowledgeStore
from utils.logger import setup_logger, log_success, log_warning

logger = setup_logger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_MIN_SIMILARITY = 0.7


class ContextBuilder:
    """Builds a grounding context block for diagnosis prompts."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        knowledge_store: KnowledgeStore,
        top_k: int = DEFAULT_TOP_K,
        min_similarity: float = DEFAULT_MIN_SIMILARITY
    ):
        self.embedding_provider = embedding_provider
        self.knowledge_store = knowledge_store
        self.top_k = top_k
        self.min_similarity = min_similarity

    def build_context(self, symptom_text: str) -> str:
        """
        Find knowledge articles similar to the symptoms and format them.

        Args:
            symptom_text: Customer's description of the problem

        Returns:
            Formatted context, or "" if nothing matched or a provider failed
        """
        try:
            query_vector = self.embedding_provider.embed(symptom_text)
            documents = self.knowledge_store.similarity_search(
                query_vector,
                top_k=self.top_k,
                min_similarity=self.min_similarity
            )
        except Exception as e:
            log_warning(logger, f"Knowledge retrieval unavailable, continuing without context: {e}")
            return ""

        if not documents:
            logger.info("No knowledge articles above similarity threshold")
            return ""

        log_success(logger, f"Retrieved {len(documents)} knowledge articles")
        return format_knowledge_context(documents)
