"""
Knowledge Loader Service
Loads repair-knowledge CSV files and converts them into LangChain Document objects with metadata.
"""

import os
import csv
import re
from typing import List
from langchain_core.documents import Document
from utils.logger import setup_logger, log_success, log_warning, log_error

logger = setup_logger(__name__)


class KnowledgeLoader:
    """Load repair-knowledge CSV rows into LangChain Documents."""

    def __init__(self, data_dir: str = "data/knowledge"):
        """
        Initialize the knowledge loader.

        Args:
            data_dir: Directory containing knowledge CSV files
        """
        self.data_dir = data_dir

    @staticmethod
    def _slugify(title: str) -> str:
        return re.sub(r'[^a-z0-9]+', '_', title.lower()).strip('_')

    def load_knowledge_csv(self, file_path: str) -> List[Document]:
        """
        Load repair articles from CSV.

        Expected columns: title, category, content

        The page content is "title\\ncontent", which is the text that gets embedded.

        Args:
            file_path: Path to knowledge CSV file

        Returns:
            List of Document objects
        """
        if not os.path.exists(file_path):
            log_warning(logger, f"{file_path} not found, skipping knowledge.")
            return []

        documents = []

        try:
            with open(file_path, 'r', encoding='utf-8', newline='') as f:
                reader = csv.DictReader(f)

                for idx, row in enumerate(reader):
                    title = (row.get('title') or '').strip()
                    content = (row.get('content') or '').strip()

                    # Skip rows with missing critical data
                    if not title or not content:
                        log_warning(logger, f"Skipping knowledge row {idx} - missing title or content")
                        continue

                    category = (row.get('category') or 'general').strip() or 'general'

                    metadata = {
                        "source": "repair_knowledge",
                        "type": "knowledge",
                        "title": title,
                        "category": category,
                        "content": content,
                        "doc_id": f"knowledge_{self._slugify(title)}"
                    }

                    documents.append(Document(
                        page_content=f"{title}\n{content}",
                        metadata=metadata
                    ))

            log_success(logger, f"Loaded {len(documents)} knowledge documents")

        except (OSError, csv.Error) as e:
            log_error(logger, f"Error loading knowledge CSV: {e}")
            return []

        return documents

    def load_all_documents(self) -> List[Document]:
        """Load every CSV file in data_dir."""
        if not os.path.isdir(self.data_dir):
            log_warning(logger, f"{self.data_dir} not found, no knowledge to load.")
            return []

        documents = []
        for filename in sorted(os.listdir(self.data_dir)):
            if filename.endswith('.csv'):
                documents.extend(self.load_knowledge_csv(os.path.join(self.data_dir, filename)))
        return documents
