"""
Domain types for the diagnosis-to-video pipeline.
All values are request-scoped; nothing here is persisted by the pipeline itself.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from utils.formatters import format_duration, format_view_count


class VideoCategory:
    """Pedagogical buckets for educational videos."""
    SYMPTOM_EXPLANATION = "symptom_explanation"
    REPAIR_WALKTHROUGH = "repair_walkthrough"
    COST_BREAKDOWN = "cost_breakdown"
    PREVENTION = "prevention"


# Canonical display order
VIDEO_CATEGORIES = (
    VideoCategory.SYMPTOM_EXPLANATION,
    VideoCategory.REPAIR_WALKTHROUGH,
    VideoCategory.COST_BREAKDOWN,
    VideoCategory.PREVENTION,
)

MIN_VEHICLE_YEAR = 1900


@dataclass(frozen=True)
class KnowledgeDocument:
    """A seeded repair-knowledge article with its embedding."""
    title: str
    category: str
    content: str
    embedding: List[float] = field(default_factory=list, repr=False)
    similarity: Optional[float] = None


@dataclass
class DiagnosisResult:
    diagnosis: str
    recommended_parts: List[str] = field(default_factory=list)
    estimated_cost: float = 0.0
    confidence: int = 50

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnosis": self.diagnosis,
            "recommendedParts": list(self.recommended_parts),
            "estimatedCost": self.estimated_cost,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class VehicleInfo:
    year: int
    make: str
    model: str

    def validate(self, current_year: Optional[int] = None) -> "VehicleInfo":
        """
        Check year range and make/model presence.

        Raises:
            ValueError: If any field is out of range or empty
        """
        current_year = current_year or datetime.now().year
        if not isinstance(self.year, int) or not MIN_VEHICLE_YEAR <= self.year <= current_year + 1:
            raise ValueError(
                f"Vehicle year must be between {MIN_VEHICLE_YEAR} and {current_year + 1}"
            )
        if not self.make or not self.make.strip():
            raise ValueError("Vehicle make is required")
        if not self.model or not self.model.strip():
            raise ValueError("Vehicle model is required")
        return self

    def describe(self) -> str:
        return f"{self.year} {self.make} {self.model}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class VideoCandidate:
    """Raw search hit from the video search provider."""
    id: str
    title: str
    description: str = ""
    channel_title: str = ""
    published_at: Optional[str] = None
    view_count: Optional[int] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "thumbnail": self.thumbnail,
            "channelTitle": self.channel_title,
            "publishedAt": self.published_at,
            "viewCount": self.view_count,
            "duration": self.duration,
            "durationText": format_duration(self.duration),
            "viewsText": format_view_count(self.view_count),
            "url": self.url,
        }


@dataclass
class RankedVideo(VideoCandidate):
    score: float = 0.0
    category: str = VideoCategory.REPAIR_WALKTHROUGH

    @classmethod
    def from_candidate(cls, candidate: VideoCandidate, score: float, category: str) -> "RankedVideo":
        return cls(
            id=candidate.id,
            title=candidate.title,
            description=candidate.description,
            channel_title=candidate.channel_title,
            published_at=candidate.published_at,
            view_count=candidate.view_count,
            duration=candidate.duration,
            thumbnail=candidate.thumbnail,
            score=score,
            category=category,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["score"] = self.score
        data["category"] = self.category
        return data
