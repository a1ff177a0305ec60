from __future__ import annotations

import json
import logging
import math
import random
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from posezones.pose.types import KEYPOINT_NAMES, is_keypoint_name

logger = logging.getLogger(__name__)

DEFAULT_WIDTH_CM = 4.0
DEFAULT_HEIGHT_CM = 4.0
# Absolute zones measure offset and size in units of this many frame pixels.
ABSOLUTE_PX_PER_UNIT = 10


class DataFormatError(ValueError):
	"""Raised when an exported zone list cannot be imported."""


@dataclass(frozen=True)
class Zone:
	"""
	Operator-authored zone: a rectangle in centimeters, anchored to a keypoint.
	The offset is measured from the keypoint to the rectangle's top-left corner.

	Absolute zones ignore the anchor's position and calibration: offset and size
	are frame coordinates in units of ABSOLUTE_PX_PER_UNIT pixels. They are still only placed
	while the anchor keypoint is confidently detected.
	"""

	id: int
	relative_to: str
	offset_x: float = 0.0
	offset_y: float = 0.0
	width: float = DEFAULT_WIDTH_CM
	height: float = DEFAULT_HEIGHT_CM
	is_absolute: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"relativeTo": self.relative_to,
			"offsetX": self.offset_x,
			"offsetY": self.offset_y,
			"width": self.width,
			"height": self.height,
			"isAbsPosition": self.is_absolute,
		}

	@classmethod
	def from_dict(cls, raw: Any) -> "Zone":
		if not isinstance(raw, dict):
			raise DataFormatError(f"zone record must be an object, got {type(raw).__name__}")
		zone_id = raw.get("id")
		if isinstance(zone_id, bool) or not isinstance(zone_id, int):
			raise DataFormatError(f"zone id must be an integer, got {zone_id!r}")
		relative_to = raw.get("relativeTo")
		if not is_keypoint_name(relative_to):
			raise DataFormatError(f"zone {zone_id}: unknown keypoint {relative_to!r}")
		# Exports from the browser sketch used plain x/y for the offset.
		offset_x = _number(raw, ("offsetX", "x"), zone_id)
		offset_y = _number(raw, ("offsetY", "y"), zone_id)
		width = _number(raw, ("width",), zone_id)
		height = _number(raw, ("height",), zone_id)
		if width < 0 or height < 0:
			raise DataFormatError(f"zone {zone_id}: size must be non-negative")
		is_absolute = raw.get("isAbsPosition", False)
		if not isinstance(is_absolute, bool):
			raise DataFormatError(f"zone {zone_id}: isAbsPosition must be a boolean, got {is_absolute!r}")
		return cls(
			id=zone_id,
			relative_to=relative_to,
			offset_x=offset_x,
			offset_y=offset_y,
			width=width,
			height=height,
			is_absolute=is_absolute,
		)


def _number(raw: Dict[str, Any], keys: Tuple[str, ...], zone_id: int) -> float:
	for k in keys:
		if k in raw:
			v = raw[k]
			if isinstance(v, bool) or not isinstance(v, (int, float)):
				raise DataFormatError(f"zone {zone_id}: {k} must be a number, got {v!r}")
			if not math.isfinite(v):
				raise DataFormatError(f"zone {zone_id}: {k} must be finite")
			return v
	raise DataFormatError(f"zone {zone_id}: missing {keys[0]}")


@dataclass(frozen=True)
class PixelRect:
	x: int
	y: int
	w: int
	h: int

	@property
	def area(self) -> int:
		return max(0, self.w) * max(0, self.h)


@dataclass
class ZoneRuntimeState:
	"""Derived per-frame state of one zone. Never persisted."""

	rect: Optional[PixelRect] = None
	motion_count: int = 0
	motion_ratio: float = 0.0
	triggered: bool = False

	def to_dict(self) -> Dict[str, Any]:
		r = self.rect
		return {
			"rect": [r.x, r.y, r.w, r.h] if r else None,
			"motion_count": int(self.motion_count),
			"motion_ratio": float(self.motion_ratio),
			"triggered": bool(self.triggered),
		}


class ZoneRegistry:
	"""
	Insertion-ordered set of zones keyed by id.

	The zones live in an immutable tuple that is swapped under a lock, so a
	per-frame reader taking `snapshot()` never observes a half-applied change.
	Ids are assigned monotonically and never reused within the registry's life,
	including after imports. An imported file can still carry ids that were in
	use before, so `generation` counts whole-set replacements and lets per-zone
	state keyed by id be discarded.
	"""

	def __init__(self, zones: Iterable[Zone] = (), rng: Optional[random.Random] = None) -> None:
		self._lock = threading.Lock()
		self._zones: Tuple[Zone, ...] = ()
		self._last_id = 0
		self._generation = 0
		self._rng = rng or random.Random()
		zones = list(zones)
		if zones:
			self.replace_all(zones)

	def snapshot(self) -> Tuple[Zone, ...]:
		return self._zones

	@property
	def generation(self) -> int:
		return self._generation

	def versioned_snapshot(self) -> Tuple[int, Tuple[Zone, ...]]:
		"""The zones together with the generation they belong to."""
		with self._lock:
			return self._generation, self._zones

	def __len__(self) -> int:
		return len(self._zones)

	def __iter__(self) -> Iterator[Zone]:
		return iter(self._zones)

	def get(self, zone_id: int) -> Optional[Zone]:
		return next((z for z in self._zones if z.id == zone_id), None)

	def add(
		self,
		relative_to: Optional[str] = None,
		offset_x: Optional[float] = None,
		offset_y: Optional[float] = None,
		width: Optional[float] = None,
		height: Optional[float] = None,
		is_absolute: bool = False,
	) -> Zone:
		if relative_to is None:
			relative_to = self._rng.choice(KEYPOINT_NAMES)
		fields = _checked_fields(
			relative_to=relative_to,
			offset_x=0.0 if offset_x is None else offset_x,
			offset_y=0.0 if offset_y is None else offset_y,
			width=DEFAULT_WIDTH_CM if width is None else width,
			height=DEFAULT_HEIGHT_CM if height is None else height,
			is_absolute=is_absolute,
		)
		with self._lock:
			self._last_id += 1
			zone = Zone(id=self._last_id, **fields)
			self._zones = self._zones + (zone,)
		logger.info("[Zones] Added zone %d relative to %s", zone.id, zone.relative_to)
		return zone

	def update(self, zone_id: int, **changes: Any) -> Zone:
		"""Change editable fields of one zone; unknown ids raise KeyError."""
		changes = {k: v for k, v in changes.items() if v is not None}
		fields = _checked_fields(**changes)
		with self._lock:
			for idx, zone in enumerate(self._zones):
				if zone.id == zone_id:
					updated = replace(zone, **fields)
					self._zones = self._zones[:idx] + (updated,) + self._zones[idx + 1:]
					return updated
		raise KeyError(zone_id)

	def remove(self, zone_id: int) -> bool:
		with self._lock:
			kept = tuple(z for z in self._zones if z.id != zone_id)
			removed = len(kept) != len(self._zones)
			self._zones = kept
		if removed:
			logger.info("[Zones] Removed zone %d", zone_id)
		return removed

	def remove_all(self) -> int:
		with self._lock:
			n = len(self._zones)
			self._zones = ()
		if n:
			logger.info("[Zones] Removed all %d zone(s)", n)
		return n

	def replace_all(self, zones: Iterable[Zone]) -> None:
		new_zones = tuple(zones)
		ids = [z.id for z in new_zones]
		if len(set(ids)) != len(ids):
			raise DataFormatError("duplicate zone ids")
		with self._lock:
			self._zones = new_zones
			self._generation += 1
			if ids:
				self._last_id = max(self._last_id, max(ids))
		logger.info("[Zones] Replaced registry with %d zone(s)", len(new_zones))

	def serialize(self) -> str:
		return json.dumps([z.to_dict() for z in self._zones])

	@staticmethod
	def deserialize(text: str | bytes) -> List[Zone]:
		try:
			raw = json.loads(text)
		except (TypeError, ValueError) as e:
			raise DataFormatError(f"invalid JSON: {e}") from e
		if not isinstance(raw, list):
			raise DataFormatError("expected a list of zones")
		if not raw:
			raise DataFormatError("zone list is empty")
		zones = [Zone.from_dict(item) for item in raw]
		ids = [z.id for z in zones]
		if len(set(ids)) != len(ids):
			raise DataFormatError("duplicate zone ids")
		return zones

	def import_json(self, text: str | bytes) -> List[Zone]:
		zones = self.deserialize(text)
		self.replace_all(zones)
		return zones


def _checked_fields(**fields: Any) -> Dict[str, Any]:
	out: Dict[str, Any] = {}
	for k, v in fields.items():
		if k == "relative_to":
			if not is_keypoint_name(v):
				raise ValueError(f"unknown keypoint {v!r}")
			out[k] = v
			continue
		if k == "is_absolute":
			if not isinstance(v, bool):
				raise ValueError("is_absolute must be a boolean")
			out[k] = v
			continue
		if k not in ("offset_x", "offset_y", "width", "height"):
			raise ValueError(f"unknown zone field {k!r}")
		if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
			raise ValueError(f"{k} must be a finite number")
		if k in ("width", "height") and v < 0:
			raise ValueError(f"{k} must be non-negative")
		out[k] = v
	return out