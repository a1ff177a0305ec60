"""Pydantic response models for API docs (routes may return dicts)."""
from typing import List, Optional

from pydantic import BaseModel


class ZoneResponse(BaseModel):
	"""One zone definition plus its current runtime state."""

	index: int
	id: int
	relativeTo: str
	offsetX: float
	offsetY: float
	width: float
	height: float
	isAbsPosition: bool = False
	rect: Optional[List[int]] = None
	motion_count: int = 0
	motion_ratio: float = 0.0
	triggered: bool = False


class ZoneListResponse(BaseModel):
	zones: List[ZoneResponse]


class ImportResponse(BaseModel):
	"""Response from POST /zones/import."""

	detail: str
	count: int


class ParamsResponse(BaseModel):
	known_eye_distance_cm: float
	motion_threshold: float
	motion_count_threshold: int
	min_keypoint_confidence: float
	keypoint_threshold: float
