"""Zone editing API. Routes: /zones, /zones/{zone_id}, /zones/export, /zones/import."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from app_state import AppState
from deps import get_state
from posezones.zones import DataFormatError
from schemas.requests import ZoneCreatePayload, ZoneUpdatePayload
from schemas.responses import ImportResponse, ZoneListResponse, ZoneResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["zones"])


def _zone_view(state: AppState, zone_id: int) -> Dict[str, Any]:
	view = next((z for z in state.engine.zone_states() if z["id"] == zone_id), None)
	if view is None:
		raise HTTPException(status_code=404, detail=f"Zone {zone_id} not found")
	return view


@router.get("/zones", response_model=ZoneListResponse)
async def list_zones(state: AppState = Depends(get_state)):
	"""All zones in registry order, with their latest pixel rect and trigger state."""
	return {"zones": state.engine.zone_states()}


@router.post("/zones", response_model=ZoneResponse)
async def add_zone(payload: Optional[ZoneCreatePayload] = None, state: AppState = Depends(get_state)):
	"""Add a zone. Missing fields default to offset (0,0), size 4x4 cm and a random anchor."""
	payload = payload or ZoneCreatePayload()
	try:
		zone = state.registry.add(
			relative_to=payload.relativeTo,
			offset_x=payload.offsetX,
			offset_y=payload.offsetY,
			width=payload.width,
			height=payload.height,
			is_absolute=payload.isAbsPosition,
		)
	except ValueError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return _zone_view(state, zone.id)


@router.delete("/zones")
async def remove_all_zones(confirm: bool = False, state: AppState = Depends(get_state)):
	"""Remove every zone. Needs ?confirm=true unless the registry is already empty."""
	if len(state.registry) > 0 and not confirm:
		raise HTTPException(status_code=409, detail="Removing all zones requires confirm=true")
	removed = state.registry.remove_all()
	return {"detail": "removed", "count": removed}


@router.get("/zones/export")
async def export_zones(state: AppState = Depends(get_state)):
	"""Zone definitions as a JSON list (runtime state is not included)."""
	return Response(
		content=state.registry.serialize(),
		media_type="application/json",
		headers={"Content-Disposition": 'attachment; filename="zones.json"'},
	)


@router.post("/zones/import", response_model=ImportResponse)
async def import_zones(request: Request, state: AppState = Depends(get_state)):
	"""Replace all zones with an exported list. On any format error nothing changes."""
	body = await request.body()
	try:
		zones = state.registry.import_json(body)
	except DataFormatError as e:
		logger.warning("[Zones] Import rejected: %s", e)
		raise HTTPException(status_code=400, detail=f"Invalid zone file: {e}")
	return {"detail": "imported", "count": len(zones)}


@router.get("/zones/{zone_id}", response_model=ZoneResponse)
async def get_zone(zone_id: int, state: AppState = Depends(get_state)):
	return _zone_view(state, zone_id)


@router.patch("/zones/{zone_id}", response_model=ZoneResponse)
async def update_zone(zone_id: int, payload: ZoneUpdatePayload, state: AppState = Depends(get_state)):
	"""Move, resize or re-anchor a zone."""
	try:
		state.registry.update(
			zone_id,
			relative_to=payload.relativeTo,
			offset_x=payload.offsetX,
			offset_y=payload.offsetY,
			width=payload.width,
			height=payload.height,
			is_absolute=payload.isAbsPosition,
		)
	except KeyError:
		raise HTTPException(status_code=404, detail=f"Zone {zone_id} not found")
	except ValueError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return _zone_view(state, zone_id)


@router.delete("/zones/{zone_id}")
async def remove_zone(zone_id: int, state: AppState = Depends(get_state)):
	if not state.registry.remove(zone_id):
		raise HTTPException(status_code=404, detail=f"Zone {zone_id} not found")
	return {"detail": "removed", "id": zone_id}
