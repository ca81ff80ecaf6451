import logging
from enum import Enum
from typing import Optional

from .state_machine import CookingSession

log = logging.getLogger(__name__)


class Command(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"
    COMPLETE = "complete"
    EXIT = "exit"
    START_TIMER = "start_timer"
    REPEAT = "repeat"
    UNKNOWN = "unknown"


KEY_BINDINGS = {
    "ArrowRight": Command.NEXT,
    " ": Command.NEXT,
    "ArrowLeft": Command.PREVIOUS,
    "Enter": Command.COMPLETE,
    "Escape": Command.EXIT,
}


def command_for_key(key: str) -> Optional[Command]:
    return KEY_BINDINGS.get(key)


def classify_command(text: str) -> Command:
    """Simple keyword-based classification for spoken or typed commands"""
    text = text.lower().strip()

    if any(keyword in text for keyword in ["previous", "back", "go back", "last step"]):
        return Command.PREVIOUS

    if any(keyword in text for keyword in ["done", "finished", "complete", "mark"]):
        return Command.COMPLETE

    if any(keyword in text for keyword in ["stop cooking", "exit", "quit", "stop"]):
        return Command.EXIT

    if any(keyword in text for keyword in ["timer", "time it", "countdown"]):
        return Command.START_TIMER

    if any(keyword in text for keyword in ["repeat", "again", "say that"]):
        return Command.REPEAT

    if any(keyword in text for keyword in ["next step", "next", "continue", "skip", "go on"]):
        return Command.NEXT

    return Command.UNKNOWN


def dispatch(session: CookingSession, command: Optional[Command]) -> bool:
    """
    Apply a command to the session. Returns True when the session reacted.
    Commands are ignored while the session is not active.
    """
    if command is None or not session.is_active:
        return False

    if command is Command.NEXT:
        return session.next()
    if command is Command.PREVIOUS:
        return session.previous()
    if command is Command.COMPLETE:
        return session.mark_complete()
    if command is Command.EXIT:
        session.exit()
        return True
    if command is Command.START_TIMER:
        return session.start_step_timer() is not None
    if command is Command.REPEAT:
        session.announce()
        return True

    log.warning("Unknown command")
    return False


def handle_key(session: CookingSession, key: str) -> bool:
    return dispatch(session, command_for_key(key))
