"""Runtime status. Routes: /status."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app_state import AppState
from deps import get_state

router = APIRouter(tags=["status"])


@router.get("/status")
async def status(state: AppState = Depends(get_state)) -> Dict[str, Any]:
	"""Frame rate, calibration, visible keypoints and sink connectivity."""
	engine = state.engine
	pose = engine.last_pose
	kp_threshold = engine.params.keypoint_threshold
	keypoints = {}
	if pose is not None:
		keypoints = {
			name: {"x": kp.x_px, "y": kp.y_px, "confidence": kp.score}
			for name, kp in pose.confident(kp_threshold).items()
		}
	return {
		"runner": state.runner.get_status() if state.runner else {"running": False},
		"frames": engine.frames_processed,
		"cm_per_pixel": engine.last_cm_per_pixel,
		"keypoints": keypoints,
		"zones": len(state.registry),
		"sink": state.sink.get_status() if state.sink else None,
	}
