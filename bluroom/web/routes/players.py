"""
Player Routes for Bluroom.

REST endpoints for the web UI:
- /api/players: rooms (discovery, cached or fast-refreshed)
- /api/player/{address}/*: status and control of a single device
- /api/player/{address}/group/*: multi-room grouping

Every endpoint accepts ``?port=`` (default 11000). Control endpoints answer
502 when the device refused or did not respond.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from bluroom.player.client import ControlAction
from bluroom.player.models import DEFAULT_DEVICE_PORT

if TYPE_CHECKING:
    from bluroom.player.service import PlayerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["players"])

# URL segment -> transport action
CONTROL_ACTIONS: dict[str, ControlAction] = {
    "play": ControlAction.PLAY,
    "pause": ControlAction.PAUSE,
    "stop": ControlAction.STOP,
    "skip": ControlAction.NEXT,
    "back": ControlAction.PREVIOUS,
}


class VolumeRequest(BaseModel):
    level: int = Field(ge=0, le=100)


class MuteRequest(BaseModel):
    mute: bool


class SeekRequest(BaseModel):
    seconds: int = Field(ge=0)


class CreateGroupRequest(BaseModel):
    slaves: list[str] = Field(min_length=1)


class GroupMemberRequest(BaseModel):
    slave: str


def register_player_routes(app: FastAPI, player_service: PlayerService) -> None:
    """
    Register player routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        player_service: PlayerService used by every endpoint
    """
    app.state.player_service = player_service
    app.include_router(router)


def _service(request: Request) -> PlayerService:
    service = getattr(request.app.state, "player_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Server not initialized")
    return service


def _ok(success: bool, what: str) -> dict[str, Any]:
    if not success:
        raise HTTPException(status_code=502, detail=f"Player did not accept {what}")
    return {"ok": True}


# =============================================================================
# Discovery
# =============================================================================


@router.get("/api/players")
async def list_groups(request: Request, refresh: bool = False, skip_cache: bool = False) -> dict[str, Any]:
    """List rooms. ``refresh`` forces a full network sweep."""
    groups = await _service(request).discover(force_refresh=refresh, skip_cache=skip_cache)
    return {"count": len(groups), "groups": [g.to_dict() for g in groups]}


@router.post("/api/players/refresh")
async def refresh_players(request: Request) -> dict[str, Any]:
    """Force a full network sweep."""
    groups = await _service(request).discover(force_refresh=True)
    return {"count": len(groups), "groups": [g.to_dict() for g in groups]}


@router.post("/api/players/refresh-known")
async def refresh_known_players(request: Request) -> dict[str, Any]:
    """Re-probe already known players without a sweep."""
    groups = await _service(request).refresh_known()
    return {"count": len(groups), "groups": [g.to_dict() for g in groups]}


@router.get("/api/players/flat")
async def list_players(request: Request, skip_cache: bool = False) -> dict[str, Any]:
    players = await _service(request).list_players(skip_cache=skip_cache)
    return {"count": len(players), "players": [p.to_dict() for p in players]}


@router.get("/api/players/selector")
async def player_selector(request: Request) -> list[dict[str, Any]]:
    items = await _service(request).selector()
    return [item.to_dict() for item in items]


# =============================================================================
# Single device status
# =============================================================================


@router.get("/api/player/{address}/sync")
async def get_sync_status(request: Request, address: str, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    player = await _service(request).sync_status(address, port)
    if player is None:
        raise HTTPException(status_code=404, detail="Player not reachable")
    return player.to_dict()


@router.get("/api/player/{address}/status")
async def get_playback_status(request: Request, address: str, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    status = await _service(request).playback_status(address, port)
    if status is None:
        raise HTTPException(status_code=404, detail="Player not reachable")
    return status.to_dict()


# =============================================================================
# Playback control
# =============================================================================


@router.post("/api/player/{address}/volume")
async def set_volume(
    request: Request,
    address: str,
    body: VolumeRequest,
    port: int = DEFAULT_DEVICE_PORT,
) -> dict[str, Any]:
    return _ok(await _service(request).set_volume(address, body.level, port), "volume")


@router.post("/api/player/{address}/mute")
async def set_mute(request: Request, address: str, body: MuteRequest, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    return _ok(await _service(request).set_mute(address, body.mute, port), "mute")


@router.post("/api/player/{address}/seek")
async def seek(request: Request, address: str, body: SeekRequest, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    return _ok(await _service(request).seek(address, body.seconds, port), "seek")


# =============================================================================
# Grouping
# =============================================================================


@router.post("/api/player/{address}/group/create")
async def create_group(
    request: Request,
    address: str,
    body: CreateGroupRequest,
    port: int = DEFAULT_DEVICE_PORT,
) -> dict[str, Any]:
    return _ok(await _service(request).create_group(address, body.slaves, port), "group")


@router.post("/api/player/{address}/group/add")
async def add_to_group(
    request: Request,
    address: str,
    body: GroupMemberRequest,
    port: int = DEFAULT_DEVICE_PORT,
) -> dict[str, Any]:
    return _ok(await _service(request).add_to_group(address, body.slave, port), "slave")


@router.post("/api/player/{address}/group/remove")
async def remove_from_group(
    request: Request,
    address: str,
    body: GroupMemberRequest,
    port: int = DEFAULT_DEVICE_PORT,
) -> dict[str, Any]:
    return _ok(await _service(request).remove_from_group(address, body.slave, port), "slave removal")


@router.post("/api/player/{address}/group/leave")
async def leave_group(request: Request, address: str, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    return _ok(await _service(request).leave_group(address, port), "leave")


# Registered last so the fixed paths above take precedence
@router.post("/api/player/{address}/{action}")
async def control(request: Request, address: str, action: str, port: int = DEFAULT_DEVICE_PORT) -> dict[str, Any]:
    """Transport control: play, pause, stop, skip, back."""
    control_action = CONTROL_ACTIONS.get(action)
    if control_action is None:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")
    return _ok(await _service(request).control(address, control_action, port), action)
