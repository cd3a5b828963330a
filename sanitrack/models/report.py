"""
Pydantic models for citizen violation reports.
These models handle request shape for report submission and responses.

Coordinate ranges and the captured_at bound are domain invariants checked
by the report service, so they are not duplicated as Field constraints here.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Tuple
from enum import Enum


class ReportCategory(str, Enum):
    """Kinds of sanitation violation a citizen can report."""
    PLASTIC_DUMPING = "plastic_dumping"
    GUTTER_DUMPING = "gutter_dumping"
    OPEN_DEFECATION = "open_defecation"
    CONSTRUCTION_WASTE = "construction_waste"


class ReportCreate(BaseModel):
    """
    Model for creating a new report (incoming POST request).
    """
    category: ReportCategory = Field(..., description="Violation category")
    latitude: float = Field(..., description="WGS84 latitude in decimal degrees")
    longitude: float = Field(..., description="WGS84 longitude in decimal degrees")
    gps_accuracy: Optional[float] = Field(None, gt=0, description="GPS accuracy in meters")
    captured_at: datetime = Field(..., description="When the photo/video was captured (ISO 8601)")
    photo_urls: Optional[List[str]] = Field(None, description="Uploaded photo URLs")
    video_url: Optional[str] = Field(None, description="Uploaded video URL")
    description: Optional[str] = Field(None, max_length=1000, description="What the citizen observed")
    anonymous: bool = Field(default=False, description="Hide reporter identity from officers")

    class Config:
        json_schema_extra = {
            "example": {
                "category": "plastic_dumping",
                "latitude": 5.6037,
                "longitude": -0.187,
                "gps_accuracy": 15,
                "captured_at": "2024-01-15T10:30:00Z",
                "photo_urls": ["https://example.com/photo.jpg"],
                "description": "Plastic dumping near market",
                "anonymous": False,
            }
        }
        extra = "ignore"


class ReportResponse(BaseModel):
    """
    Report as returned to the citizen: the immutable observation plus
    the current case status and points earned.
    """
    id: str
    case_id: str = Field(..., description="Case identifier (same as report id, one-to-one)")
    category: ReportCategory
    latitude: float
    longitude: float
    gps_accuracy: Optional[float] = None
    captured_at: datetime
    description: Optional[str] = None
    photo_urls: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    anonymous: bool = False
    case_status: str
    points_earned: int = 0
    created_at: datetime


class ReportListResponse(BaseModel):
    total: int
    limit: int
    offset: int
    reports: List[ReportResponse]


class HeatmapResponse(BaseModel):
    """[latitude, longitude, count] triples grouped by exact coordinate."""
    violations_by_location: List[Tuple[float, float, int]]
