from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MotionConfig:
	# Physical distance between the eyes; the per-frame cm/px ratio is derived from it.
	known_eye_distance_cm: float = 3.3
	# Per-pixel RGB difference threshold as a fraction of full scale (0..1).
	motion_threshold: float = 0.3
	# Number of moving pixels needed for a zone to be "on".
	motion_count_threshold: int = 50
	# Anchor keypoints below this score do not move their zones.
	min_keypoint_confidence: float = 0.5
	# Keypoints below this score are hidden from /status listings.
	keypoint_threshold: float = 0.2


@dataclass(frozen=True)
class CameraConfig:
	enabled: bool = True
	index: int = 0
	width: int = 640
	height: int = 480


@dataclass(frozen=True)
class PoseConfig:
	backend: str = "mediapipe"
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class OscConfig:
	enabled: bool = True
	host: str = "127.0.0.1"
	# TidalCycles control port
	port: int = 6010
	address: str = "/ctrl"


@dataclass(frozen=True)
class MidiConfig:
	enabled: bool = True
	# Empty means "first available output"; otherwise exact or substring match.
	output: str = ""
	channel: int = 0
	note_base: int = 36
	cc_base: int = 20
	velocity: int = 64


@dataclass(frozen=True)
class ZonesConfig:
	# Add one zone next to the left eye at startup so there is something to play with.
	seed_default: bool = True


@dataclass(frozen=True)
class LoggingConfig:
	level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
	motion: MotionConfig = field(default_factory=MotionConfig)
	camera: CameraConfig = field(default_factory=CameraConfig)
	pose: PoseConfig = field(default_factory=PoseConfig)
	osc: OscConfig = field(default_factory=OscConfig)
	midi: MidiConfig = field(default_factory=MidiConfig)
	zones: ZonesConfig = field(default_factory=ZonesConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# posezones/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	env = os.getenv("POSEZONES_CONFIG")
	if env:
		return Path(env).expanduser().resolve()
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except (TypeError, ValueError):
		return int(default)


def _as_bool(v: Any, default: bool) -> bool:
	if isinstance(v, bool):
		return v
	if isinstance(v, (int, float)):
		return bool(v)
	if isinstance(v, str):
		return v.strip().lower() in ("1", "true", "yes", "on")
	return bool(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		f = float(v)
	except (TypeError, ValueError):
		return float(default)
	return f if math.isfinite(f) else float(default)


def _clamp01(v: float) -> float:
	return min(1.0, max(0.0, float(v)))


def parse_motion_config(raw: Any, base: Optional[MotionConfig] = None) -> MotionConfig:
	"""
	Build a MotionConfig from a (partial) dict. Missing keys keep the values of `base`.
	Also used by PATCH /params, so invalid values fall back instead of raising.
	"""
	base = base or MotionConfig()
	if not isinstance(raw, dict):
		return base

	eye_cm = _as_float(raw.get("known_eye_distance_cm", base.known_eye_distance_cm), base.known_eye_distance_cm)
	threshold = _as_float(raw.get("motion_threshold", base.motion_threshold), base.motion_threshold)
	count_threshold = _as_int(raw.get("motion_count_threshold", base.motion_count_threshold), base.motion_count_threshold)
	min_conf = _as_float(raw.get("min_keypoint_confidence", base.min_keypoint_confidence), base.min_keypoint_confidence)
	kp_threshold = _as_float(raw.get("keypoint_threshold", base.keypoint_threshold), base.keypoint_threshold)

	return MotionConfig(
		known_eye_distance_cm=eye_cm if eye_cm > 0.0 else base.known_eye_distance_cm,
		motion_threshold=_clamp01(threshold),
		motion_count_threshold=max(0, count_threshold),
		min_keypoint_confidence=_clamp01(min_conf),
		keypoint_threshold=_clamp01(kp_threshold),
	)


def parse_config(raw: Any) -> AppConfig:
	if not isinstance(raw, dict):
		return AppConfig()

	motion = parse_motion_config(raw.get("motion"))

	cam_enabled = _as_bool(_deep_get(raw, ["camera", "enabled"], True), True)
	cam_index = _as_int(_deep_get(raw, ["camera", "index"], 0), 0)
	cam_w = _as_int(_deep_get(raw, ["camera", "width"], 640), 640)
	cam_h = _as_int(_deep_get(raw, ["camera", "height"], 480), 480)

	pose_backend = _as_str(_deep_get(raw, ["pose", "backend"], "mediapipe"), "mediapipe").strip().lower()
	pose_complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	pose_det = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	pose_trk = _as_float(_deep_get(raw, ["pose", "min_tracking_confidence"], 0.5), 0.5)

	osc_enabled = _as_bool(_deep_get(raw, ["osc", "enabled"], True), True)
	osc_host = _as_str(_deep_get(raw, ["osc", "host"], "127.0.0.1"), "127.0.0.1")
	osc_port = _as_int(_deep_get(raw, ["osc", "port"], 6010), 6010)
	osc_address = _as_str(_deep_get(raw, ["osc", "address"], "/ctrl"), "/ctrl").strip()
	if not osc_address.startswith("/"):
		osc_address = "/ctrl"

	midi_enabled = _as_bool(_deep_get(raw, ["midi", "enabled"], True), True)
	midi_output = _as_str(_deep_get(raw, ["midi", "output"], ""), "")
	midi_channel = _as_int(_deep_get(raw, ["midi", "channel"], 0), 0)
	midi_note_base = _as_int(_deep_get(raw, ["midi", "note_base"], 36), 36)
	midi_cc_base = _as_int(_deep_get(raw, ["midi", "cc_base"], 20), 20)
	midi_velocity = _as_int(_deep_get(raw, ["midi", "velocity"], 64), 64)

	seed_default = _as_bool(_deep_get(raw, ["zones", "seed_default"], True), True)
	log_level = _as_str(_deep_get(raw, ["logging", "level"], "INFO"), "INFO").strip().upper() or "INFO"

	return AppConfig(
		motion=motion,
		camera=CameraConfig(
			enabled=cam_enabled,
			# NOTE: do not use `or 0` style fallbacks here; camera index 0 is valid.
			index=cam_index if cam_index >= 0 else 0,
			width=cam_w if cam_w > 0 else 640,
			height=cam_h if cam_h > 0 else 480,
		),
		pose=PoseConfig(
			backend=pose_backend or "mediapipe",
			model_complexity=min(2, max(0, pose_complexity)),
			min_detection_confidence=_clamp01(pose_det),
			min_tracking_confidence=_clamp01(pose_trk),
		),
		osc=OscConfig(
			enabled=osc_enabled,
			host=osc_host or "127.0.0.1",
			port=osc_port if 0 < osc_port < 65536 else 6010,
			address=osc_address,
		),
		midi=MidiConfig(
			enabled=midi_enabled,
			output=midi_output,
			channel=midi_channel if 0 <= midi_channel <= 15 else 0,
			note_base=midi_note_base if 0 <= midi_note_base <= 127 else 36,
			cc_base=midi_cc_base if 0 <= midi_cc_base <= 127 else 20,
			velocity=midi_velocity if 0 < midi_velocity <= 127 else 64,
		),
		zones=ZonesConfig(seed_default=seed_default),
		logging=LoggingConfig(level=log_level),
	)


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except (OSError, ValueError):
		# If config is malformed, fail safe to defaults (but keep app running).
		return AppConfig()
	return parse_config(raw)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
