"""
Integration Manager
Pushes finished diagnoses to an external shop-management system.
"""

import os
from collections import deque
from typing import Any, Deque, Dict, Optional, Sequence

import requests
from dotenv import load_dotenv

from models.domain import DiagnosisResult, VideoCandidate
from services.interfaces import DiagnosticSink
from utils.errors import ConfigurationError, ProviderError
from utils.logger import setup_logger, log_success, log_error

load_dotenv()

logger = setup_logger(__name__)

# Recent sync outcomes kept for inspection; older entries are discarded
SYNC_LOG_SIZE = 100


def build_sink_payload(
    result: DiagnosisResult,
    videos: Optional[Sequence[VideoCandidate]] = None
) -> Dict[str, Any]:
    """
    Shape a diagnosis for an external system.

    educationalVideos is present only when videos were found, as {title, url} pairs.
    """
    payload = result.to_dict()
    if videos:
        payload["educationalVideos"] = [{"title": video.title, "url": video.url} for video in videos]
    return payload


class HTTPDiagnosticSink(DiagnosticSink):
    """Posts diagnostic payloads as JSON to a shop-management webhook."""

    name = "http"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = (base_url or os.getenv("SHOP_SYNC_URL") or "").rstrip("/")
        if not self.base_url:
            raise ConfigurationError("Shop sync is not configured. Set SHOP_SYNC_URL in .env file", feature="shop_sync")
        self.api_key = api_key or os.getenv("SHOP_SYNC_API_KEY")
        self.timeout = timeout
        self.session = session or requests.Session()

    def push_diagnostic(self, external_order_id: str, payload: Dict[str, Any]) -> None:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self.session.post(
                f"{self.base_url}/orders/{external_order_id}/diagnostics",
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"Shop sync failed for order {external_order_id}: {e}", provider=self.name) from e


class IntegrationManager:
    """Routes diagnosis results to the configured sink, if any."""

    def __init__(self, sink: Optional[DiagnosticSink] = None, log_size: int = SYNC_LOG_SIZE):
        self.sink = sink
        self.sync_log: Deque[Dict[str, Any]] = deque(maxlen=log_size)

    def sync_diagnostic_result(
        self,
        external_order_id: str,
        result: DiagnosisResult,
        videos: Optional[Sequence[VideoCandidate]] = None
    ) -> Dict[str, Any]:
        """
        Push one diagnosis. Never raises.

        Returns:
            {"synced": True}, {"synced": False, "reason": "no_integration"}
            or {"synced": False, "error": message}
        """
        if self.sink is None:
            logger.info("No integration configured, skipping sync")
            return {"synced": False, "reason": "no_integration"}

        try:
            self.sink.push_diagnostic(external_order_id, build_sink_payload(result, videos))
        except Exception as e:
            log_error(logger, f"Sync to {self.sink.name} failed: {e}")
            self._log_sync(external_order_id, "error", str(e))
            return {"synced": False, "error": str(e)}

        self._log_sync(external_order_id, "success")
        log_success(logger, f"Diagnosis synced to {self.sink.name} (order {external_order_id})")
        return {"synced": True}

    def _log_sync(self, external_order_id: str, status: str, error: Optional[str] = None):
        entry = {"integration": self.sink.name, "order_id": external_order_id, "status": status}
        if error:
            entry["error"] = error
        self.sync_log.append(entry)
