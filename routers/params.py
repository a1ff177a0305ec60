"""Motion-detection tuning. Routes: /params."""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from app_state import AppState
from deps import get_state
from posezones.config import parse_motion_config
from schemas.requests import ParamsPayload
from schemas.responses import ParamsResponse

router = APIRouter(tags=["params"])


@router.get("/params", response_model=ParamsResponse)
async def get_params(state: AppState = Depends(get_state)):
	return asdict(state.engine.params)


@router.patch("/params", response_model=ParamsResponse)
async def update_params(payload: ParamsPayload, state: AppState = Depends(get_state)):
	"""Change thresholds/eye distance; applied from the next frame."""
	params = parse_motion_config(payload.model_dump(exclude_none=True), base=state.engine.params)
	state.engine.set_params(params)
	return asdict(params)
