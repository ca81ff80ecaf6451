from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from pydantic import BaseModel
import logging
import asyncio
from typing import Any, Dict, List, Optional

from ..core.config import get_settings
from ..core.input_adapter import classify_command, dispatch, handle_key
from ..core.notifier import TimerAlert
from ..core.state_machine import CookingSession
from ..models.recipe import CookingSettings, Step
from ..services.narrator import Narrator
from ..services.recipe_parser import RecipeParser, build_steps

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

NO_INSTRUCTIONS = "No instructions available"


class RecipeInput(BaseModel):
    title: str = "Untitled"
    instructions: Optional[List[str]] = None
    text: Optional[str] = None
    settings: Dict[str, Any] = {}


class StepsResponse(BaseModel):
    title: str
    steps: List[Step]


async def load_steps(payload: RecipeInput) -> List[Step]:
    instructions = payload.instructions
    if instructions is None and payload.text:
        recipe = await RecipeParser.parse(payload.text, title=payload.title)
        instructions = recipe.instructions
    return build_steps(instructions or [])


def initial_settings(overrides: Dict[str, Any]) -> CookingSettings:
    config = get_settings()
    defaults = CookingSettings(
        voice_enabled=config.voice_enabled,
        show_tips=config.show_tips,
        auto_advance=config.auto_advance,
        sound_enabled=config.sound_enabled,
        compact_mode=config.compact_mode,
    )
    return defaults.merged(overrides)


@router.post("/steps", response_model=StepsResponse)
async def annotate_steps(payload: RecipeInput):
    steps = await load_steps(payload)
    log.info(f"Annotated {len(steps)} steps for '{payload.title}'")
    return StepsResponse(title=payload.title, steps=steps)


def apply_action(session: CookingSession, message: Dict[str, Any]) -> None:
    action = message.get("action")

    if action == "go_to":
        session.go_to(int(message.get("index", -1)))
    elif action == "next":
        session.next()
    elif action == "previous":
        session.previous()
    elif action == "complete":
        session.mark_complete()
    elif action == "exit":
        session.exit()
    elif action == "start_timer":
        if "minutes" in message:
            name = message.get("name") or f"Step {session.current_step_index + 1}"
            session.start_timer(name, float(message["minutes"]))
        else:
            session.start_step_timer()
    elif action == "toggle_timer":
        session.toggle_timer(str(message.get("timer_id", "")))
    elif action == "remove_timer":
        session.remove_timer(str(message.get("timer_id", "")))
    elif action == "settings":
        session.update_settings(message.get("settings") or {})
    elif action == "notes":
        session.notes = str(message.get("notes", ""))
    elif action != "state":
        log.warning(f"⚠️ Unknown action: {action}")


@router.websocket("/cook")
async def cooking_session_endpoint(ws: WebSocket):
    log.info("🔗 New cooking session connection")
    await ws.accept()

    outbox: asyncio.Queue = asyncio.Queue()

    async def pump_outbox():
        while True:
            message = await outbox.get()
            try:
                if ws.application_state == WebSocketState.CONNECTED:
                    await ws.send_json(message)
                else:
                    log.warning(f"❌ WebSocket not connected, '{message.get('type')}' message dropped")
            except Exception as e:
                log.error(f"💥 Failed to send '{message.get('type')}' message: {e}")
            finally:
                outbox.task_done()

    # Client must send the recipe first
    try:
        payload = RecipeInput.model_validate(await ws.receive_json())
        settings = initial_settings(payload.settings)
    except WebSocketDisconnect:
        log.info("👋 Client disconnected before sending a recipe")
        return
    except ValueError as e:
        await ws.send_json({"type": "error", "error": f"Invalid recipe: {e}"})
        await ws.close()
        return

    steps = await load_steps(payload)
    config = get_settings()
    narrator = Narrator(outbox.put)
    session = CookingSession(
        settings=settings,
        narrator=narrator,
        on_complete=lambda: outbox.put_nowait({"type": "session_complete"}),
        on_exit=lambda: outbox.put_nowait({"type": "session_exit"}),
        on_change=lambda: outbox.put_nowait({"type": "state", **session.snapshot()}),
        tick_interval=config.tick_interval_seconds,
        auto_advance_delay=config.auto_advance_delay_seconds,
    )
    session.timers.on_complete = TimerAlert(outbox.put, lambda: session.settings)

    if not session.start(steps):
        await ws.send_json({"type": "error", "error": NO_INSTRUCTIONS})
        await ws.close()
        return

    pump = asyncio.create_task(pump_outbox())
    log.info(f"✅ Session started for '{payload.title}' with {len(steps)} steps")
    await outbox.put({"type": "state", **session.snapshot()})

    try:
        while session.is_active:
            try:
                message = await ws.receive_json()
            except ValueError as e:
                await outbox.put({"type": "error", "error": f"Invalid message: {e}"})
                continue
            if not isinstance(message, dict):
                await outbox.put({"type": "error", "error": "Invalid message: expected a JSON object"})
                continue
            if "key" in message:
                handle_key(session, str(message["key"]))
            elif "command" in message:
                dispatch(session, classify_command(str(message["command"])))
            else:
                try:
                    apply_action(session, message)
                except (TypeError, ValueError) as e:
                    await outbox.put({"type": "error", "error": f"Invalid action: {e}"})
            await outbox.put({"type": "state", **session.snapshot()})
        await outbox.join()
        await ws.close()
    except WebSocketDisconnect:
        log.info("👋 Client disconnected")
    finally:
        if session.is_active:
            session.exit()
        narrator.cancel()
        pump.cancel()
        log.info("🛑 Cooking session closed")
