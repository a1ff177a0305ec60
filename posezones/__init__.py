"""
posezones: keypoint-anchored motion zones for interactive installations.

Zones are rectangles defined in centimeters relative to a body keypoint. Each
frame they are projected to pixel space, scanned for frame-to-frame motion and
turned into on/off + intensity notifications for OSC/MIDI control surfaces.
"""

from pathlib import Path


def _read_version() -> str:
	try:
		vf = Path(__file__).resolve().parents[1] / "VERSION"
		if vf.exists():
			val = vf.read_text(encoding="utf-8").strip()
			if val:
				return val
	except OSError:
		pass
	return "0.1.0"


__version__ = _read_version()
