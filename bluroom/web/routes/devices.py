"""
Known-device Routes for Bluroom.

Administrative view of the known-device store:
- GET /api/known-devices: every device seen so far, online or not
- DELETE /api/known-devices/{address}: forget a device

Removal is the only way a record leaves the store; going offline never
deletes anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, HTTPException, Request

if TYPE_CHECKING:
    from bluroom.player.service import PlayerService

router = APIRouter(tags=["devices"])


def register_device_routes(app: FastAPI, player_service: PlayerService) -> None:
    """Register known-device routes with the FastAPI app."""
    app.state.player_service = player_service
    app.include_router(router)


def _service(request: Request) -> PlayerService:
    service = getattr(request.app.state, "player_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Server not initialized")
    return service


@router.get("/api/known-devices")
async def list_known_devices(request: Request) -> dict[str, Any]:
    devices = await _service(request).known_devices()
    return {"count": len(devices), "devices": [d.to_dict() for d in devices]}


@router.delete("/api/known-devices/{address}")
async def forget_device(request: Request, address: str) -> dict[str, Any]:
    if not await _service(request).forget_device(address):
        raise HTTPException(status_code=404, detail="Device not known")
    return {"ok": True}
