"""Pydantic request body models."""
from typing import Optional

from pydantic import BaseModel, Field


class ZoneCreatePayload(BaseModel):
	"""Request body for POST /zones. Every field is optional; missing ones get defaults."""

	relativeTo: Optional[str] = Field(None, description="Anchor keypoint name, e.g. 'leftEye'; random if omitted")
	offsetX: Optional[float] = Field(None, description="Horizontal offset from the keypoint in cm")
	offsetY: Optional[float] = Field(None, description="Vertical offset from the keypoint in cm")
	width: Optional[float] = Field(None, ge=0, description="Zone width in cm (default 4)")
	height: Optional[float] = Field(None, ge=0, description="Zone height in cm (default 4)")
	isAbsPosition: bool = Field(False, description="Treat offset and size as frame coordinates in 10 px units")


class ZoneUpdatePayload(BaseModel):
	"""Request body for PATCH /zones/{zone_id}. Only given fields change."""

	relativeTo: Optional[str] = None
	offsetX: Optional[float] = None
	offsetY: Optional[float] = None
	width: Optional[float] = Field(None, ge=0)
	height: Optional[float] = Field(None, ge=0)
	isAbsPosition: Optional[bool] = None


class ParamsPayload(BaseModel):
	"""Request body for PATCH /params. Runtime motion-detection tuning."""

	known_eye_distance_cm: Optional[float] = Field(None, gt=0, description="Physical eye separation in cm")
	motion_threshold: Optional[float] = Field(None, ge=0, le=1, description="Per-pixel RGB difference threshold (0..1)")
	motion_count_threshold: Optional[int] = Field(None, ge=0, description="Moving pixels needed to turn a zone on")
	min_keypoint_confidence: Optional[float] = Field(None, ge=0, le=1)
	keypoint_threshold: Optional[float] = Field(None, ge=0, le=1)
