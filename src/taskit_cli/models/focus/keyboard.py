"""Non-blocking keyboard input for the live timer."""

import select
import sys
import termios
import tty
from typing import Literal

KeyAction = Literal["pause", "resume", "next", "back", "stop", "quit"]

KEY_ACTIONS: dict[str, KeyAction] = {
    "p": "pause",
    "r": "resume",
    " ": "pause",
    "n": "next",
    "b": "back",
    "s": "stop",
    "q": "quit",
}


def action_for_key(key: str | None, is_paused: bool = False) -> KeyAction | None:
    """Translate a keypress; space toggles between pause and resume."""
    if key is None:
        return None
    action = KEY_ACTIONS.get(key.lower())
    if key == " " and is_paused:
        return "resume"
    return action


class KeyboardHandler:
    """Reads single keypresses from a cbreak terminal without blocking."""

    def __init__(self):
        self.fd = sys.stdin.fileno()
        self.old_settings = None
        try:
            self.old_settings = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
        except termios.error:
            # stdin is not a terminal
            self.old_settings = None

    def get_key(self) -> str | None:
        """Return the pressed key, or None if nothing is waiting."""
        if select.select([sys.stdin], [], [], 0)[0]:
            return sys.stdin.read(1)
        return None

    def stop(self):
        """Restore terminal settings."""
        if self.old_settings is not None:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.old_settings)
            self.old_settings = None
