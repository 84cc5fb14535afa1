"""
Unit tests for Video Search
Tests the concurrent fan-out and the YouTube Data API client (mocked session).
"""

from unittest.mock import MagicMock

import pytest
import requests

from conftest import BarrierVideoSearchProvider, FakeVideoSearchProvider, make_video
from models.domain import VehicleInfo
from services.query_synthesizer import QuerySynthesizer
from services.video_search import VideoSearchService, YouTubeSearchService
from utils.errors import ConfigurationError, ProviderError


class TestVideoSearchService:
    """Test query fan-out, isolation and ranking"""

    def test_not_configured_raises(self):
        """TEST: No provider raises ConfigurationError"""
        service = VideoSearchService(None)

        assert service.is_configured is False
        with pytest.raises(ConfigurationError):
            service.find_educational_videos("brake wear", ["grinding"])

    def test_every_query_is_searched(self):
        """TEST: One provider call per synthesized query"""
        provider = FakeVideoSearchProvider()
        service = VideoSearchService(provider)
        expected = QuerySynthesizer().build_queries("CV joint failure", ["clicking"])

        service.find_educational_videos("CV joint failure", ["clicking"])

        assert sorted(provider.queries) == sorted(expected)

    def test_queries_run_concurrently(self):
        """
        TEST: Searches are in flight at the same time

        GIVEN: A provider whose searches only return once all 5 are running together
        WHEN: search_all() runs 5 queries
        THEN: Every query returns its video (a sequential loop would time out)
        """
        queries = [f"query {i}" for i in range(5)]
        provider = BarrierVideoSearchProvider(
            len(queries),
            results={query: [make_video(f"v{i}")] for i, query in enumerate(queries)},
        )
        service = VideoSearchService(provider, max_workers=len(queries))

        candidates = service.search_all(queries)

        assert [video.id for video in candidates] == ["v0", "v1", "v2", "v3", "v4"]

    def test_one_failing_query_is_isolated(self):
        """
        TEST: A failing query never sinks the batch

        GIVEN: 5 queries where the 3rd raises a provider error
        WHEN: find_educational_videos() runs
        THEN: Videos from the other 4 queries are still ranked
        """
        synthesizer = QuerySynthesizer({})
        queries = synthesizer.build_queries("squeaky hinge", ["squeak"])
        assert len(queries) == 5

        provider = FakeVideoSearchProvider(
            results={query: [make_video(f"v{i}", f"Video {i}")] for i, query in enumerate(queries)},
            failing_queries=[queries[2]],
        )
        service = VideoSearchService(provider, synthesizer)

        videos = service.find_educational_videos("squeaky hinge", ["squeak"])

        assert sorted(video.id for video in videos) == ["v0", "v1", "v3", "v4"]

    def test_all_queries_failing_gives_empty(self):
        """TEST: All queries failing yields an empty list, not an error"""
        queries = QuerySynthesizer().build_queries("brake wear", ["grinding"])
        provider = FakeVideoSearchProvider(failing_queries=queries)

        assert VideoSearchService(provider).find_educational_videos("brake wear", ["grinding"]) == []

    def test_duplicates_across_queries_collapse(self):
        """TEST: The same video from several queries appears once"""
        provider = FakeVideoSearchProvider(default=[make_video("same", "Brake pad replacement")])

        videos = VideoSearchService(provider).find_educational_videos("brake wear", ["grinding"])

        assert [video.id for video in videos] == ["same"]

    def test_details_enrich_candidates(self):
        """TEST: Details from get_video_details replace snippet-only hits"""
        provider = FakeVideoSearchProvider(
            default=[make_video("a", "Brake job")],
            details={"a": make_video("a", "Brake job", view_count=1_000_000, duration="PT10M")},
        )

        videos = VideoSearchService(provider).find_educational_videos("brake", ["grinding"])

        assert videos[0].view_count == 1_000_000
        assert videos[0].duration == "PT10M"

    def test_details_failure_falls_back_to_snippets(self):
        """TEST: A failing details call still ranks the raw hits"""
        provider = FakeVideoSearchProvider(
            default=[make_video("a", "Brake job")],
            details_error=ProviderError("quota", provider="youtube"),
        )

        videos = VideoSearchService(provider).find_educational_videos("brake", ["grinding"])

        assert [video.id for video in videos] == ["a"]

    def test_results_capped_at_eight(self):
        """TEST: Many hits are trimmed to the top 8"""
        provider = FakeVideoSearchProvider(
            default=[make_video(f"v{i:02d}", f"Brake video {i}") for i in range(20)]
        )

        videos = VideoSearchService(provider).find_educational_videos(
            "brake", ["grinding"], VehicleInfo(2018, "Honda", "Civic")
        )

        assert len(videos) == 8


class TestYouTubeSearchService:
    """Test the YouTube Data API v3 client with a mocked requests session"""

    @pytest.fixture
    def session(self):
        return MagicMock(spec=requests.Session)

    @staticmethod
    def _response(payload):
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        return response

    def test_missing_api_key_raises(self, monkeypatch):
        """TEST: No YOUTUBE_API_KEY raises ConfigurationError"""
        monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            YouTubeSearchService()

    def test_search_request_parameters(self, session):
        """TEST: search.list is called with video type, duration, safe search and English relevance"""
        session.get.return_value = self._response({"items": []})
        service = YouTubeSearchService(api_key="test-key", timeout=3, session=session)

        service.search_videos("brake noise", max_results=5)

        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        assert url == "https://www.googleapis.com/youtube/v3/search"
        assert params["type"] == "video"
        assert params["videoDuration"] == "medium"
        assert params["safeSearch"] == "strict"
        assert params["relevanceLanguage"] == "en"
        assert params["maxResults"] == 5
        assert params["key"] == "test-key"
        assert session.get.call_args.kwargs["timeout"] == 3.0

    def test_search_maps_snippets(self, session):
        """TEST: Search items become candidates, preferring the medium thumbnail"""
        session.get.return_value = self._response({"items": [
            {
                "id": {"kind": "youtube#video", "videoId": "abc123"},
                "snippet": {
                    "title": "Brake pads",
                    "description": "How to",
                    "channelTitle": "ChrisFix",
                    "publishedAt": "2024-01-01T00:00:00Z",
                    "thumbnails": {"default": {"url": "d.jpg"}, "medium": {"url": "m.jpg"}},
                },
            },
            {"id": {"kind": "youtube#channel", "channelId": "xyz"}, "snippet": {"title": "Channel"}},
        ]})
        service = YouTubeSearchService(api_key="k", session=session)

        candidates = service.search_videos("brake pads")

        assert len(candidates) == 1
        assert candidates[0].id == "abc123"
        assert candidates[0].thumbnail == "m.jpg"
        assert candidates[0].url == "https://www.youtube.com/watch?v=abc123"

    def test_details_chunked_by_fifty(self, session):
        """TEST: videos.list is called once per 50 ids"""
        session.get.return_value = self._response({"items": [
            {"id": "v1", "snippet": {"title": "t", "thumbnails": {"default": {"url": "d.jpg"}}},
             "statistics": {"viewCount": "1234"}, "contentDetails": {"duration": "PT8M"}},
        ]})
        service = YouTubeSearchService(api_key="k", session=session)

        details = service.get_video_details([f"v{i}" for i in range(120)])

        assert session.get.call_count == 3
        first_ids = session.get.call_args_list[0].kwargs["params"]["id"].split(",")
        assert len(first_ids) == 50
        assert details[0].view_count == 1234
        assert details[0].thumbnail == "d.jpg"

    def test_http_error_becomes_provider_error(self, session):
        """TEST: Non-2xx responses raise ProviderError"""
        response = MagicMock()
        response.status_code = 403
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
        session.get.return_value = response
        service = YouTubeSearchService(api_key="k", session=session)

        with pytest.raises(ProviderError, match="403"):
            service.search_videos("brake")

    def test_timeout_becomes_provider_error(self, session):
        """TEST: Request timeouts raise ProviderError"""
        session.get.side_effect = requests.exceptions.Timeout()
        service = YouTubeSearchService(api_key="k", timeout=1, session=session)

        with pytest.raises(ProviderError, match="timed out"):
            service.search_videos("brake")
