"""
Media Uploader
Stores customer-provided photos and audio before diagnosis.
"""

import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional
from uuid import uuid4

from dotenv import load_dotenv

from services.interfaces import MediaStorage
from utils.logger import setup_logger, log_success, log_error, log_warning

load_dotenv()

logger = setup_logger(__name__)

IMAGE_FOLDER = "images"
AUDIO_FOLDER = "audio"


class MediaFile(NamedTuple):
    filename: str
    content: bytes


def safe_filename(filename: str) -> str:
    """Strip directories and replace anything outside [A-Za-z0-9._-] with '_'."""
    name = os.path.basename(filename or "").strip()
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "upload"


class LocalMediaStorage(MediaStorage):
    """MediaStorage that writes files under a local directory."""

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or os.getenv("MEDIA_DIR", "data/media"))
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Media directory ensured at: {self.base_path}")
        except OSError as e:
            log_error(logger, f"Could not create media directory at {self.base_path}: {e}")
            raise

    def upload(self, folder: str, filename: str, content: bytes) -> str:
        target_dir = self.base_path / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / filename
        with open(file_path, "wb") as buffer:
            buffer.write(content)
        logger.info(f"Saved media file to {file_path}")
        return file_path.resolve().as_uri()


class MediaUploader:
    """Uploads a request's media files concurrently."""

    def __init__(self, storage: MediaStorage, max_workers: int = 4):
        self.storage = storage
        self.max_workers = max_workers

    def upload_all(
        self,
        images: Optional[List[MediaFile]] = None,
        audio: Optional[MediaFile] = None
    ) -> Dict[str, Any]:
        """
        Upload images and audio. A failed upload is logged and left out.

        Returns:
            {"image_urls": [...], "audio_url": str or None}, images in input order
        """
        images = list(images or [])
        # Batch id keeps same-millisecond requests from overwriting each other
        prefix = f"{int(time.time() * 1000)}_{uuid4().hex[:8]}"

        jobs = [
            (IMAGE_FOLDER, f"{prefix}_{index}_{safe_filename(image.filename)}", image.content)
            for index, image in enumerate(images)
        ]
        if audio is not None:
            jobs.append((AUDIO_FOLDER, f"{prefix}_{safe_filename(audio.filename)}", audio.content))

        if not jobs:
            return {"image_urls": [], "audio_url": None}

        results: List[Optional[str]] = []
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(jobs)))) as executor:
            futures = [executor.submit(self.storage.upload, *job) for job in jobs]
            for (folder, filename, _), future in zip(jobs, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    log_warning(logger, f"Upload of {folder}/{filename} failed: {e}")
                    results.append(None)

        image_urls = [url for url in results[:len(images)] if url]
        audio_url = results[len(images)] if audio is not None else None

        log_success(logger, f"Uploaded {len(image_urls)}/{len(images)} images"
                            f"{', audio' if audio_url else ''}")
        return {"image_urls": image_urls, "audio_url": audio_url}
