"""
Pydantic schemas for API request/response validation
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from models.domain import MIN_VEHICLE_YEAR, VehicleInfo


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ==================== REQUESTS ====================

class VehicleInfoModel(CamelModel):
    year: int
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value: int) -> int:
        max_year = datetime.now().year + 1
        if not MIN_VEHICLE_YEAR <= value <= max_year:
            raise ValueError(f"year must be between {MIN_VEHICLE_YEAR} and {max_year}")
        return value

    def to_domain(self) -> VehicleInfo:
        return VehicleInfo(year=self.year, make=self.make.strip(), model=self.model.strip())


class DiagnoseRequest(CamelModel):
    """Request model for the diagnose endpoint."""
    description: str = Field(..., min_length=1, max_length=2000, description="Customer's description of the problem")
    vehicle_info: Optional[VehicleInfoModel] = None
    external_order_id: Optional[str] = Field(None, description="Shop-management order to sync the result to")

    class Config:
        json_schema_extra = {
            "example": {
                "description": "Grinding noise when I brake, worse at low speed",
                "vehicleInfo": {"year": 2018, "make": "Honda", "model": "Civic"}
            }
        }


class VideoRequest(CamelModel):
    """Request model for the standalone video search endpoint."""
    diagnosis: str = Field(..., min_length=3, max_length=200)
    symptoms: List[str] = Field(..., min_length=1, max_length=10)
    vehicle_info: Optional[VehicleInfoModel] = None

    class Config:
        json_schema_extra = {
            "example": {
                "diagnosis": "CV joint failure",
                "symptoms": ["clicking noise when turning"],
                "vehicleInfo": {"year": 2015, "make": "Toyota", "model": "Camry"}
            }
        }


# ==================== RESPONSES ====================

class RankedVideoModel(CamelModel):
    id: str
    title: str
    description: str = ""
    thumbnail: Optional[str] = None
    channel_title: str = ""
    published_at: Optional[str] = None
    view_count: Optional[int] = None
    duration: Optional[str] = None
    duration_text: str = ""
    views_text: str = ""
    url: str
    score: float
    category: str


class CategorizedVideos(BaseModel):
    symptom_explanation: List[RankedVideoModel] = []
    repair_walkthrough: List[RankedVideoModel] = []
    cost_breakdown: List[RankedVideoModel] = []
    prevention: List[RankedVideoModel] = []


class MediaUrls(CamelModel):
    image_urls: List[str] = []
    audio_url: Optional[str] = None


class DiagnoseResponse(CamelModel):
    """Response model for diagnose/analyze endpoints."""
    diagnosis: str
    recommended_parts: List[str]
    estimated_cost: float
    confidence: int
    videos: List[RankedVideoModel]
    categorized: CategorizedVideos
    videos_available: bool
    media: MediaUrls
    sync: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "diagnosis": "Worn brake pads and rotors.",
                "recommendedParts": ["Brake Pad Set", "Brake Rotors"],
                "estimatedCost": 350.0,
                "confidence": 75,
                "videos": [],
                "categorized": {
                    "symptom_explanation": [],
                    "repair_walkthrough": [],
                    "cost_breakdown": [],
                    "prevention": []
                },
                "videosAvailable": True,
                "media": {"imageUrls": [], "audioUrl": None}
            }
        }


class VideoResponse(BaseModel):
    """Response model for video search endpoint."""
    videos: List[RankedVideoModel]
    categorized: CategorizedVideos
    total: int


class HealthResponse(BaseModel):
    """Response model for health check."""
    status_code: int
    status: str
    knowledge_docs: Optional[int] = None
    llm_model: Optional[str] = None
    video_search: Optional[bool] = None
    reason: Optional[str] = None


class StatsResponse(BaseModel):
    """Response model for stats endpoint."""
    diagnoses_processed: int
    ai_diagnoses: int
    fallback_diagnoses: int
    video_searches: int
    video_search_failures: int
    average_response_time: float
    knowledge_docs: int
    llm_model: Optional[str] = None
    video_search_configured: bool


class ErrorResponse(BaseModel):
    """Response model for errors."""
    status_code: int
    status: str
    message: str
    error_type: Optional[str] = None
