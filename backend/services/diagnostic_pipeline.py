"""
Diagnostic Pipeline
Orchestrates a customer analysis end-to-end:
Upload media → Diagnose → Find videos → (Sync)
"""

import time
from typing import Any, Dict, List, Optional

from models.domain import RankedVideo, VehicleInfo
from services.diagnosis_service import DiagnosisGenerator
from services.integration_manager import IntegrationManager
from services.interfaces import KnowledgeStore
from services.media_uploader import MediaUploader
from services.video_ranker import group_by_category
from services.video_search import VideoSearchService
from utils.errors import ConfigurationError
from utils.logger import setup_logger, log_pipeline_step, log_success, log_error, log_warning

logger = setup_logger(__name__)


def enrich_description(symptom_text: str, image_count: int, has_audio: bool) -> str:
    """Append notes about attached media to the text sent for diagnosis."""
    enriched = symptom_text
    if image_count > 0:
        enriched += f"\n\n[Customer provided {image_count} photo(s) of the issue]"
    if has_audio:
        enriched += "\n[Customer provided audio recording of the issue]"
    return enriched


def serialize_videos(videos: List[RankedVideo]) -> Dict[str, Any]:
    """Flat and per-category JSON views of ranked videos."""
    return {
        "videos": [video.to_dict() for video in videos],
        "categorized": {
            category: [video.to_dict() for video in bucket]
            for category, bucket in group_by_category(videos).items()
        },
    }


class DiagnosticPipeline:
    """Runs diagnosis and video discovery for one customer request."""

    def __init__(
        self,
        diagnosis_generator: DiagnosisGenerator,
        video_search: VideoSearchService,
        media_uploader: Optional[MediaUploader] = None,
        integration_manager: Optional[IntegrationManager] = None,
        knowledge_store: Optional[KnowledgeStore] = None,
        llm_model: Optional[str] = None
    ):
        """
        Args:
            diagnosis_generator: Produces the structured diagnosis
            video_search: Finds and ranks educational videos
            media_uploader: Stores customer photos/audio (media is ignored without one)
            integration_manager: Optional shop-management sync
            knowledge_store: Reported in stats and health checks
            llm_model: Model name reported in stats
        """
        self.diagnosis_generator = diagnosis_generator
        self.video_search = video_search
        self.media_uploader = media_uploader
        self.integration_manager = integration_manager
        self.knowledge_store = knowledge_store
        self.llm_model = llm_model

        # Stats tracking
        self.diagnoses_processed = 0
        self.video_searches = 0
        self.video_search_failures = 0
        self.total_response_time = 0.0

        log_success(logger, "Diagnostic Pipeline initialized")

    def run(
        self,
        symptom_text: str,
        vehicle_info: Optional[VehicleInfo] = None,
        media: Optional[Dict[str, Any]] = None,
        external_order_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Diagnose a customer's symptoms and attach educational videos.

        Args:
            symptom_text: Customer's description of the problem
            vehicle_info: Optional year/make/model
            media: Optional {"images": [MediaFile], "audio": MediaFile}
            external_order_id: When set and an integration is configured, push the result

        Returns:
            Dictionary with the diagnosis fields, videos, categorized videos,
            videosAvailable and uploaded media URLs

        Raises:
            ValueError: If the symptom text is empty or the vehicle info is invalid
        """
        if not symptom_text or not symptom_text.strip():
            raise ValueError("Problem description is required")
        if vehicle_info is not None:
            vehicle_info.validate()

        start_time = time.time()

        log_pipeline_step(logger, 1, "Uploading media")
        uploaded = self._upload_media(media)
        diagnosis_text = enrich_description(
            symptom_text,
            len(uploaded["image_urls"]),
            uploaded["audio_url"] is not None
        )

        log_pipeline_step(logger, 2, "Diagnosing")
        result = self.diagnosis_generator.generate_diagnosis(diagnosis_text, vehicle_info)

        log_pipeline_step(logger, 3, "Finding educational videos")
        videos: List[RankedVideo] = []
        videos_available = True
        try:
            videos = self._find_videos(result.diagnosis, [symptom_text], vehicle_info)
        except ConfigurationError as e:
            log_warning(logger, f"Video search unavailable: {e}")
            videos_available = False
        except Exception as e:
            log_error(logger, f"Video search failed: {e}")
            self.video_search_failures += 1

        response = result.to_dict()
        response.update(serialize_videos(videos))
        response["videosAvailable"] = videos_available
        response["media"] = uploaded

        if external_order_id and self.integration_manager is not None:
            log_pipeline_step(logger, 4, "Syncing to shop system")
            response["sync"] = self.integration_manager.sync_diagnostic_result(external_order_id, result, videos)

        elapsed = time.time() - start_time
        self.diagnoses_processed += 1
        self.total_response_time += elapsed
        log_success(logger, f"Diagnosis complete ({elapsed:.2f}s, {len(videos)} videos)")
        return response

    def search_videos(
        self,
        diagnosis: str,
        symptoms: List[str],
        vehicle_info: Optional[VehicleInfo] = None
    ) -> Dict[str, Any]:
        """
        Standalone video lookup for an existing diagnosis.

        Raises:
            ConfigurationError: If video search is not configured
        """
        videos = self._find_videos(diagnosis, symptoms, vehicle_info)
        response = serialize_videos(videos)
        response["total"] = len(videos)
        return response

    def _find_videos(
        self,
        diagnosis: str,
        symptoms: List[str],
        vehicle_info: Optional[VehicleInfo]
    ) -> List[RankedVideo]:
        self.video_searches += 1
        return self.video_search.find_educational_videos(diagnosis, symptoms, vehicle_info)

    def _upload_media(self, media: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not media:
            return {"image_urls": [], "audio_url": None}
        if self.media_uploader is None:
            log_warning(logger, "Media provided but no storage configured, ignoring attachments")
            return {"image_urls": [], "audio_url": None}
        return self.media_uploader.upload_all(media.get("images"), media.get("audio"))

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        avg_response_time = (
            self.total_response_time / self.diagnoses_processed
            if self.diagnoses_processed > 0
            else 0.0
        )

        return {
            "diagnoses_processed": self.diagnoses_processed,
            "ai_diagnoses": self.diagnosis_generator.ai_diagnoses,
            "fallback_diagnoses": self.diagnosis_generator.fallback_diagnoses,
            "video_searches": self.video_searches,
            "video_search_failures": self.video_search_failures,
            "average_response_time": round(avg_response_time, 2),
            "knowledge_docs": self.knowledge_store.count() if self.knowledge_store else 0,
            "llm_model": self.llm_model,
            "video_search_configured": self.video_search.is_configured,
        }

    def health_check(self) -> Dict[str, Any]:
        """
        Check pipeline health.

        Missing LLM or video search degrades the service but keeps it usable,
        so only an unreachable knowledge store is reported as unhealthy.
        """
        try:
            knowledge_docs = self.knowledge_store.count() if self.knowledge_store else 0
        except Exception as e:
            return {
                "status_code": 503,
                "status": "unhealthy",
                "reason": f"Knowledge store unavailable: {e}"
            }

        degraded = []
        if self.diagnosis_generator.completion_provider is None:
            degraded.append("llm")
        if not self.video_search.is_configured:
            degraded.append("video_search")

        return {
            "status_code": 200,
            "status": "degraded" if degraded else "healthy",
            "knowledge_docs": knowledge_docs,
            "llm_model": self.llm_model,
            "video_search": self.video_search.is_configured,
            "reason": f"Unavailable: {', '.join(degraded)}" if degraded else None
        }
