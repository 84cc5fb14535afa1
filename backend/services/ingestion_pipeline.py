"""
Ingestion Pipeline
Seeds the repair knowledge base: Load CSV → Embed → Store
"""

import time
from typing import Dict, Any

from services.document_loader import KnowledgeLoader
from utils.logger import setup_logger, log_pipeline_step, log_success, log_error, log_metric

logger = setup_logger(__name__)


class IngestionPipeline:
    """Orchestrates knowledge seeding into a knowledge store."""

    def __init__(self, embedding_service, knowledge_store):
        """
        Initialize the ingestion pipeline.

        Args:
            embedding_service: EmbeddingService (needs embed_documents)
            knowledge_store: Store with add_documents/count/reset
        """
        self.embedding_service = embedding_service
        self.store = knowledge_store

    def get_status(self) -> Dict[str, Any]:
        """
        Get the current status of the knowledge store.

        Returns:
            Dictionary with status information and HTTP-like status code
        """
        try:
            doc_count = self.store.count()
            return {
                "status_code": 200,
                "status": "ready",
                "store": type(self.store).__name__,
                "total_documents": doc_count,
                "is_empty": doc_count == 0
            }
        except Exception as e:
            return {
                "status_code": 500,
                "status": "error",
                "message": str(e)
            }

    def run_pipeline(
        self,
        data_dir: str = "data/knowledge",
        batch_size: int = 32,
        force_rebuild: bool = False
    ) -> Dict[str, Any]:
        """
        Run the full seeding pipeline: Load → Embed → Store

        Args:
            data_dir: Directory containing knowledge CSV files
            batch_size: Number of documents to embed at once
            force_rebuild: If True, clear the store before seeding

        Returns:
            Dictionary with pipeline execution statistics
        """
        start_time = time.time()

        try:
            if force_rebuild:
                logger.info("🔄 Force rebuild enabled - clearing existing knowledge...")
                self.store.reset()

            log_pipeline_step(logger, 1, f"Loading knowledge from {data_dir}")
            documents = KnowledgeLoader(data_dir=data_dir).load_all_documents()

            if not documents:
                return {
                    "status_code": 400,
                    "status": "error",
                    "message": f"No documents found in {data_dir}"
                }

            log_pipeline_step(logger, 2, "Embedding and storing")
            total_added = 0
            for i in range(0, len(documents), batch_size):
                batch = documents[i:i + batch_size]
                embedded = self.embedding_service.embed_documents(batch)
                total_added += self.store.add_documents(embedded)
                logger.info(f"   Progress: {total_added}/{len(documents)} documents stored")

            time_taken = time.time() - start_time
            final_count = self.store.count()

            log_success(logger, "Knowledge seeding complete")
            log_metric(logger, "Documents Loaded", len(documents))
            log_metric(logger, "Total in Store", final_count)

            return {
                "status_code": 200,
                "status": "success",
                "documents_loaded": len(documents),
                "documents_stored": total_added,
                "total_in_collection": final_count,
                "time_taken_seconds": round(time_taken, 2),
                "data_dir": data_dir
            }

        except Exception as e:
            log_error(logger, f"Pipeline failed: {e}")
            return {
                "status_code": 500,
                "status": "error",
                "message": str(e),
                "time_taken_seconds": round(time.time() - start_time, 2)
            }
