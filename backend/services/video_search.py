"""
Video Search Service
Finds educational repair videos for a diagnosis:
Synthesize queries → Concurrent search → Enrich → Rank.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from models.domain import RankedVideo, VehicleInfo, VideoCandidate
from services.interfaces import VideoSearchProvider
from services.query_synthesizer import QuerySynthesizer
from services.video_ranker import VideoRanker
from utils.errors import ConfigurationError, ProviderError
from utils.logger import setup_logger, log_pipeline_step, log_success, log_warning, log_metric

load_dotenv()

logger = setup_logger(__name__)

# videos.list accepts at most 50 ids per request
DETAILS_BATCH_SIZE = 50


class YouTubeSearchService(VideoSearchProvider):
    """VideoSearchProvider backed by the YouTube Data API v3."""

    BASE_URL = "https://www.googleapis.com/youtube/v3"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            api_key: YouTube Data API key (defaults to YOUTUBE_API_KEY env var)
            timeout: Per-request timeout in seconds (defaults to VIDEO_SEARCH_TIMEOUT or 5)
            session: Optional requests session

        Raises:
            ConfigurationError: If no API key is available
        """
        self.api_key = api_key or os.getenv("YOUTUBE_API_KEY")
        if not self.api_key:
            raise ConfigurationError(
                "Video search is not configured. Set YOUTUBE_API_KEY in .env file",
                feature="video_search"
            )
        self.timeout = float(timeout if timeout is not None else os.getenv("VIDEO_SEARCH_TIMEOUT", "5"))
        self.session = session or requests.Session()

    def _api_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make an authenticated API request.

        Raises:
            ProviderError: On network errors, non-2xx responses or invalid JSON
        """
        params = dict(params, key=self.api_key)
        try:
            response = self.session.get(
                f"{self.BASE_URL}/{endpoint}",
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            raise ProviderError(f"YouTube {endpoint} request timed out after {self.timeout}s", provider="youtube") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise ProviderError(f"YouTube API error {status} on {endpoint}", provider="youtube") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise ProviderError(f"YouTube {endpoint} request failed: {e}", provider="youtube") from e

    @staticmethod
    def _thumbnail(snippet: Dict[str, Any]) -> Optional[str]:
        thumbnails = snippet.get("thumbnails") or {}
        for size in ("medium", "default", "high"):
            if thumbnails.get(size, {}).get("url"):
                return thumbnails[size]["url"]
        return None

    @classmethod
    def _to_candidate(cls, video_id: str, item: Dict[str, Any]) -> VideoCandidate:
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        content_details = item.get("contentDetails") or {}

        view_count = statistics.get("viewCount")
        return VideoCandidate(
            id=video_id,
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            channel_title=snippet.get("channelTitle", ""),
            published_at=snippet.get("publishedAt"),
            view_count=int(view_count) if view_count not in (None, "") else None,
            duration=content_details.get("duration"),
            thumbnail=cls._thumbnail(snippet),
        )

    def search_videos(
        self,
        query: str,
        max_results: int = 5,
        duration_filter: str = "medium",
        safe_search: str = "strict"
    ) -> List[VideoCandidate]:
        data = self._api_request("search", {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
            "videoDuration": duration_filter,  # medium = 4-20 minutes
            "relevanceLanguage": "en",
            "safeSearch": safe_search,
        })

        candidates = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if video_id:
                candidates.append(self._to_candidate(video_id, item))
        return candidates

    def get_video_details(self, video_ids: List[str]) -> List[VideoCandidate]:
        """Fetch snippet, statistics and duration for ids, 50 per request."""
        detailed = []
        for i in range(0, len(video_ids), DETAILS_BATCH_SIZE):
            chunk = video_ids[i:i + DETAILS_BATCH_SIZE]
            data = self._api_request("videos", {
                "part": "snippet,statistics,contentDetails",
                "id": ",".join(chunk),
            })
            for item in data.get("items", []):
                if item.get("id"):
                    detailed.append(self._to_candidate(item["id"], item))
        return detailed


class VideoSearchService:
    """Orchestrates query synthesis, concurrent search and ranking."""

    def __init__(
        self,
        search_provider: Optional[VideoSearchProvider],
        query_synthesizer: Optional[QuerySynthesizer] = None,
        ranker: Optional[VideoRanker] = None,
        results_per_query: int = 5,
        max_workers: int = 8,
        duration_filter: str = "medium",
        safe_search: str = "strict"
    ):
        self.search_provider = search_provider
        self.query_synthesizer = query_synthesizer or QuerySynthesizer()
        self.ranker = ranker or VideoRanker()
        self.results_per_query = results_per_query
        self.max_workers = max_workers
        self.duration_filter = duration_filter
        self.safe_search = safe_search

    @property
    def is_configured(self) -> bool:
        return self.search_provider is not None

    def find_educational_videos(
        self,
        diagnosis: str,
        symptoms: List[str],
        vehicle_info: Optional[VehicleInfo] = None
    ) -> List[RankedVideo]:
        """
        Find and rank videos explaining a diagnosis.

        Individual query failures are logged and skipped.

        Raises:
            ConfigurationError: If no search provider is configured
        """
        if not self.is_configured:
            raise ConfigurationError("Video search is not configured", feature="video_search")

        log_pipeline_step(logger, 1, "Building video search queries")
        queries = self.query_synthesizer.build_queries(diagnosis, symptoms, vehicle_info)
        log_metric(logger, "Search queries", len(queries))

        log_pipeline_step(logger, 2, "Searching videos")
        candidates = self.search_all(queries)

        log_pipeline_step(logger, 3, "Ranking videos")
        candidates = self._enrich(candidates)
        ranked = self.ranker.rank(candidates, diagnosis)

        log_success(logger, f"Found {len(ranked)} educational videos")
        return ranked

    def search_all(self, queries: List[str]) -> List[VideoCandidate]:
        """
        Run every query concurrently and collect hits in query order.

        A failed query contributes nothing; it never aborts the batch.
        """
        if not queries:
            return []

        candidates: List[VideoCandidate] = []
        failures = 0
        workers = max(1, min(self.max_workers, len(queries)))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    self.search_provider.search_videos,
                    query,
                    self.results_per_query,
                    self.duration_filter,
                    self.safe_search
                )
                for query in queries
            ]
            for query, future in zip(queries, futures):
                try:
                    candidates.extend(future.result())
                except Exception as e:
                    failures += 1
                    log_warning(logger, f"Video search failed for '{query}': {e}")

        logger.info(f"{len(queries) - failures}/{len(queries)} queries succeeded, {len(candidates)} candidates")
        return candidates

    def _enrich(self, candidates: List[VideoCandidate]) -> List[VideoCandidate]:
        """Replace snippet-only hits with detailed records where available."""
        video_ids = list(dict.fromkeys(c.id for c in candidates if c.id))
        if not video_ids:
            return candidates

        try:
            details = {video.id: video for video in self.search_provider.get_video_details(video_ids)}
        except Exception as e:
            log_warning(logger, f"Video details unavailable, ranking on search snippets: {e}")
            return candidates

        return [details.get(candidate.id, candidate) for candidate in candidates]
