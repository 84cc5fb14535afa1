"""
Video Ranker
Deduplicates search hits, scores them against the diagnosis and buckets them
into pedagogical categories.

Score components:
    title match      +30 for the full diagnosis, else +5 per diagnosis word (> 3 chars)
    description      +10 for the full diagnosis
    popularity       min(25, log10(views) * 3)
    channel          +20 for known repair channels
    recency          +15 (<1y), +10 (<2y), +5 (<3y), -10 (>5y)
Final score is floored at 0.
"""

import math
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from models.domain import RankedVideo, VideoCandidate, VideoCategory, VIDEO_CATEGORIES
from utils.logger import setup_logger

logger = setup_logger(__name__)

MAX_RANKED_VIDEOS = 8

AUTHORITY_CHANNELS: List[str] = [
    "ChrisFix",
    "Scotty Kilmer",
    "Engineering Explained",
    "1A Auto",
    "RepairSmith",
    "South Main Auto Repair",
    "ETCG1",
    "Scanner Danner",
    "Pine Hollow Auto Diagnostics",
]

# Checked in order; first category with a keyword in title+description wins
CATEGORY_KEYWORDS: List[Tuple[str, List[str]]] = [
    (VideoCategory.SYMPTOM_EXPLANATION, ["symptom", "sound", "noise", "how to know", "diagnosis"]),
    (VideoCategory.COST_BREAKDOWN, ["cost", "price", "how much", "expensive"]),
    (VideoCategory.PREVENTION, ["prevent", "maintain", "avoid", "last longer"]),
]

DEFAULT_CATEGORY = VideoCategory.REPAIR_WALKTHROUGH

TITLE_EXACT_BONUS = 30
TITLE_WORD_BONUS = 5
DESCRIPTION_BONUS = 10
MAX_POPULARITY_BONUS = 25
AUTHORITY_BONUS = 20
OLD_VIDEO_PENALTY = 10
SECONDS_PER_YEAR = 60 * 60 * 24 * 365


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp such as '2023-04-01T12:00:00Z'."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def categorize_video(
    video: VideoCandidate,
    category_keywords: Sequence[Tuple[str, Sequence[str]]] = CATEGORY_KEYWORDS,
    default_category: str = DEFAULT_CATEGORY
) -> str:
    """Assign exactly one pedagogical category from the video's text."""
    combined = f"{video.title or ''} {video.description or ''}".lower()

    for category, keywords in category_keywords:
        if any(keyword in combined for keyword in keywords):
            return category

    return default_category


def group_by_category(videos: Sequence[RankedVideo]) -> Dict[str, List[RankedVideo]]:
    """
    Bucket videos by category, preserving their relative order.

    Every category key is present, empty buckets included.
    """
    grouped: Dict[str, List[RankedVideo]] = {category: [] for category in VIDEO_CATEGORIES}
    for video in videos:
        grouped.setdefault(video.category, []).append(video)
    return grouped


def flatten_categories(grouped: Dict[str, List[RankedVideo]]) -> List[RankedVideo]:
    """Concatenate buckets in canonical category order."""
    flattened: List[RankedVideo] = []
    for category in VIDEO_CATEGORIES:
        flattened.extend(grouped.get(category, []))
    return flattened


class VideoRanker:
    """Scores and orders candidate videos for a diagnosis."""

    def __init__(
        self,
        authority_channels: Optional[List[str]] = None,
        category_keywords: Optional[List[Tuple[str, List[str]]]] = None,
        max_results: int = MAX_RANKED_VIDEOS
    ):
        self.authority_channels = authority_channels if authority_channels is not None else AUTHORITY_CHANNELS
        self.category_keywords = category_keywords if category_keywords is not None else CATEGORY_KEYWORDS
        self.max_results = max_results

    def rank(
        self,
        candidates: Sequence[VideoCandidate],
        diagnosis_text: str,
        now: Optional[datetime] = None
    ) -> List[RankedVideo]:
        """
        Dedupe, score, categorize, sort and truncate.

        Args:
            candidates: Raw search hits, possibly with repeated ids
            diagnosis_text: Diagnosis the videos should explain
            now: Reference time for recency (defaults to current UTC time)

        Returns:
            At most max_results videos, highest score first
        """
        now = _as_utc(now)

        # Last occurrence of an id wins
        unique: Dict[str, VideoCandidate] = {}
        for candidate in candidates:
            if candidate.id:
                unique[candidate.id] = candidate

        ranked = [
            RankedVideo.from_candidate(
                candidate,
                score=self.calculate_relevance_score(candidate, diagnosis_text, now),
                category=categorize_video(candidate, self.category_keywords),
            )
            for candidate in unique.values()
        ]

        # Break score ties by id so input order never changes the output
        ranked.sort(key=lambda video: (-video.score, video.id))

        logger.info(f"Ranked {len(ranked)} unique videos from {len(candidates)} candidates")
        return ranked[:self.max_results]

    def calculate_relevance_score(
        self,
        video: VideoCandidate,
        diagnosis_text: str,
        now: Optional[datetime] = None
    ) -> float:
        now = _as_utc(now)
        score = 0.0

        title = (video.title or "").lower()
        description = (video.description or "").lower()
        diagnosis_lower = (diagnosis_text or "").lower()

        if diagnosis_lower and diagnosis_lower in title:
            score += TITLE_EXACT_BONUS
        else:
            matched_words = [
                word for word in diagnosis_lower.split()
                if len(word) > 3 and word in title
            ]
            score += len(matched_words) * TITLE_WORD_BONUS

        if diagnosis_lower and diagnosis_lower in description:
            score += DESCRIPTION_BONUS

        view_count = video.view_count or 0
        if view_count > 0:
            score += min(MAX_POPULARITY_BONUS, math.log10(view_count) * 3)

        channel = (video.channel_title or "").lower()
        if any(name.lower() in channel for name in self.authority_channels):
            score += AUTHORITY_BONUS

        published_at = parse_timestamp(video.published_at)
        if published_at is not None:
            age_in_years = (now - published_at).total_seconds() / SECONDS_PER_YEAR
            if age_in_years < 1:
                score += 15
            elif age_in_years < 2:
                score += 10
            elif age_in_years < 3:
                score += 5
            if age_in_years > 5:
                score -= OLD_VIDEO_PENALTY

        return max(0.0, score)
