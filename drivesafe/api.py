from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, status
from pydantic import BaseModel

from drivesafe.config import load_config
from drivesafe.database import open_store
from drivesafe.engine import DrivingEngine
from drivesafe.logging_config import setup_logging
from drivesafe.models import RawCallNotification, TripSession, VoiceCommand

router = APIRouter()

_engine: DrivingEngine | None = None


def get_engine() -> DrivingEngine:
    """Get the process-wide engine, creating it from configuration on first use."""
    global _engine
    if _engine is None:
        config = load_config()
        _engine = DrivingEngine(config, open_store(config.store_path))
    return _engine


async def reset_engine(engine: DrivingEngine | None = None) -> None:
    """Shut down the current engine and optionally install a replacement."""
    global _engine
    if _engine is not None:
        await _engine.shutdown()
    _engine = engine


class AutoReplyUpdate(BaseModel):
    message: str


class VipNumber(BaseModel):
    number: str


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


# ===== DRIVING MODE =====


@router.post("/driving/start")
async def start_driving() -> dict[str, str]:
    engine = get_engine()
    if engine.is_driving:
        return {
            "status": "already_driving",
            "message": f"Trip {engine.trips.current.id} already active",
        }
    session = await engine.start_driving()
    return {"status": "driving", "message": f"Trip {session.id} started"}


@router.post("/driving/stop")
async def stop_driving() -> dict[str, str]:
    engine = get_engine()
    session = await engine.stop_driving()
    if session is None:
        return {"status": "not_driving", "message": "Driving mode is not active"}
    return {
        "status": "stopped",
        "message": f"Trip {session.id} ended with {len(session.calls)} calls",
    }


@router.get("/driving/status")
async def driving_status() -> dict[str, Any]:
    engine = get_engine()
    current = engine.trips.current
    return {
        "mode": engine.state.mode.value,
        "trip_id": current.id if current else None,
        "alert_active": engine.alert_active,
        "awaiting_voice_from": engine.awaiting_voice_from,
        "pending_unresolved_call": engine.state.pending_unresolved_call is not None,
    }


# ===== CALL EVENTS =====


@router.post("/calls/events")
async def handle_call_event(notification: RawCallNotification) -> dict[str, Any]:
    """
    Receive one raw telephony notification.
    Duplicates and blank caller ids are absorbed; at most one outcome per call.
    """
    engine = get_engine()

    if notification.at is None:
        notification.at = datetime.now(UTC)

    if not engine.is_driving:
        return {"status": "ignored", "message": "Driving mode is not active"}

    outcome = await engine.handle_notification(notification)
    if outcome is None:
        return {"status": "absorbed", "outcome": None}
    return {"status": "resolved", "outcome": outcome.model_dump(mode="json")}


@router.post("/voice/commands")
async def handle_voice_command(command: VoiceCommand) -> dict[str, str]:
    engine = get_engine()
    awaiting = engine.awaiting_voice_from
    intent = await engine.handle_voice_command(command.text)
    if awaiting is None:
        return {"status": "no_pending_call", "intent": intent.value}
    return {"status": "processed", "intent": intent.value}


@router.post("/alerts/dismiss")
async def dismiss_alert() -> dict[str, str]:
    await get_engine().dismiss_alert()
    return {"status": "dismissed"}


# ===== SETTINGS =====


@router.get("/settings")
async def get_settings() -> dict[str, Any]:
    settings = get_engine().settings
    data = settings.model_dump(mode="json")
    data["vip_numbers"] = sorted(settings.vip_numbers)
    return data


@router.put("/settings/auto-reply")
async def update_auto_reply(update: AutoReplyUpdate) -> dict[str, str]:
    try:
        await get_engine().set_auto_reply(update.message)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {"status": "updated"}


@router.post("/settings/auto-decline/toggle")
async def toggle_auto_decline() -> dict[str, bool]:
    return {"auto_decline": await get_engine().toggle_auto_decline()}


@router.post("/settings/voice-confirm/toggle")
async def toggle_voice_confirm() -> dict[str, bool]:
    return {"voice_confirm": await get_engine().toggle_voice_confirm()}


@router.post("/settings/vip")
async def add_vip(vip: VipNumber) -> dict[str, str]:
    try:
        number = await get_engine().add_vip(vip.number)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {"status": "added", "number": number}


@router.delete("/settings/vip/{number}")
async def remove_vip(number: str) -> dict[str, str]:
    removed = await get_engine().remove_vip(number)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"VIP number {number} not found",
        )
    return {"status": "removed", "number": number}


# ===== TRIPS =====


@router.get("/trips")
async def list_trips() -> list[TripSession]:
    return get_engine().trips.history


@router.get("/trips/current")
async def current_trip() -> TripSession:
    current = get_engine().trips.current
    if current is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active trip",
        )
    return current


@router.post("/simulation/reset")
async def reset_simulation() -> dict[str, str]:
    await get_engine().reset_simulation()
    return {"status": "reset"}


def create_app() -> FastAPI:
    setup_logging(get_engine().config)
    app = FastAPI()
    app.include_router(router)
    return app
