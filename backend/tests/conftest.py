"""
Shared test doubles for the capability interfaces.
No test in this suite touches the network or loads a real model.
"""

import json
import threading

import pytest

from models.domain import KnowledgeDocument, VideoCandidate
from services.interfaces import (
    CompletionProvider,
    DiagnosticSink,
    EmbeddingProvider,
    KnowledgeStore,
    MediaStorage,
    VideoSearchProvider,
)
from utils.errors import ProviderError


class FakeEmbeddingProvider(EmbeddingProvider):
    """Maps text to a tiny keyword vector: [brake, cooling, electrical]."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.fail:
            raise ProviderError("embedding model offline", provider="embedding")
        lower = text.lower()
        return [
            1.0 if ("brake" in lower or "grind" in lower) else 0.0,
            1.0 if ("overheat" in lower or "coolant" in lower) else 0.0,
            1.0 if ("battery" in lower or "alternator" in lower) else 0.0,
        ]

    def embed_documents(self, documents):
        return [
            {"page_content": doc.page_content, "metadata": doc.metadata, "embedding": self.embed(doc.page_content)}
            for doc in documents
        ]


class FakeKnowledgeStore(KnowledgeStore):
    def __init__(self, documents=None, fail=False):
        self.documents = list(documents or [])
        self.fail = fail
        self.queries = []

    def similarity_search(self, query_vector, top_k, min_similarity):
        self.queries.append((query_vector, top_k, min_similarity))
        if self.fail:
            raise ProviderError("store unreachable", provider="knowledge_store")
        return [doc for doc in self.documents if (doc.similarity or 0) > min_similarity][:top_k]

    def count(self):
        if self.fail:
            raise ProviderError("store unreachable", provider="knowledge_store")
        return len(self.documents)


class FakeCompletionProvider(CompletionProvider):
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class FakeVideoSearchProvider(VideoSearchProvider):
    """
    Returns canned candidates per query.

    results: {query: [VideoCandidate]} (missing queries return [])
    failing_queries: queries that raise ProviderError
    """

    def __init__(self, results=None, failing_queries=(), details=None, details_error=None, default=None):
        self.results = results or {}
        self.failing_queries = set(failing_queries)
        self.details = details
        self.details_error = details_error
        self.default = default or []
        self.queries = []
        self._lock = threading.Lock()

    def search_videos(self, query, max_results=5, duration_filter="medium", safe_search="strict"):
        with self._lock:
            self.queries.append(query)
        if query in self.failing_queries:
            raise ProviderError(f"quota exceeded for {query}", provider="youtube")
        return list(self.results.get(query, self.default))

    def get_video_details(self, video_ids):
        if self.details_error is not None:
            raise self.details_error
        if self.details is None:
            return []
        return [self.details[video_id] for video_id in video_ids if video_id in self.details]


class FakeMediaStorage(MediaStorage):
    def __init__(self, failing_names=()):
        self.failing_names = set(failing_names)
        self.uploads = []
        self._lock = threading.Lock()

    def upload(self, folder, filename, content):
        if any(name in filename for name in self.failing_names):
            raise OSError(f"disk full writing {filename}")
        with self._lock:
            self.uploads.append((folder, filename, content))
        return f"memory://{folder}/{filename}"


class BarrierVideoSearchProvider(FakeVideoSearchProvider):
    """Blocks every search until `parties` searches are in flight at once."""

    def __init__(self, parties, **kwargs):
        super().__init__(**kwargs)
        self.barrier = threading.Barrier(parties, timeout=2)

    def search_videos(self, query, max_results=5, duration_filter="medium", safe_search="strict"):
        self.barrier.wait()
        return super().search_videos(query, max_results, duration_filter, safe_search)


class BarrierMediaStorage(FakeMediaStorage):
    """Blocks every upload until `parties` uploads are in flight at once."""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=2)

    def upload(self, folder, filename, content):
        self.barrier.wait()
        return super().upload(folder, filename, content)


class FakeDiagnosticSink(DiagnosticSink):
    name = "fake_shop"

    def __init__(self, error=None):
        self.error = error
        self.pushed = []

    def push_diagnostic(self, external_order_id, payload):
        if self.error is not None:
            raise self.error
        self.pushed.append((external_order_id, payload))


def make_video(video_id, title="Video", **kwargs):
    return VideoCandidate(id=video_id, title=title, **kwargs)


BRAKE_COMPLETION = json.dumps({
    "diagnosis": "Worn brake pads with scored rotors",
    "recommendedParts": ["Brake Pad Set", "Brake Rotors"],
    "estimatedCost": 380,
    "confidence": 82,
})


@pytest.fixture
def brake_document():
    return KnowledgeDocument(
        title="Brake Pad Wear - Symptoms and Replacement",
        category="brakes",
        content="Squealing or grinding noise when braking.",
        similarity=0.91,
    )


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def knowledge_store(brake_document):
    return FakeKnowledgeStore([brake_document])
