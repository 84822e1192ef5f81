# session.py
import logging
from enum import Enum
from typing import Callable, Dict, Optional

from config import KEY_INTERRUPT
from terminal import KeystrokeReader, TerminalModeSwitch, TerminalState

logger = logging.getLogger(__name__)

FAREWELL = "\n[SYSTEM] Exiting... Goodbye!"


class SessionState(Enum):
    RAW_WAIT = "raw_wait"
    ACTION_RUNNING = "action_running"
    TERMINATED = "terminated"


class ActionResult(Enum):
    CONTINUE = "continue"
    END_SESSION = "end_session"


Action = Callable[[], Optional[ActionResult]]


class SessionController:
    """Runs the raw-mode keystroke loop and dispatches bound keys to actions.

    Every action runs with the terminal back in cooked mode, and raw mode
    is entered again only after the action returns. Unbound bytes are
    dropped without output. The interrupt key restores the terminal and
    ends the session normally.

    TerminalUnavailable and InputError propagate to the caller; in both
    cases the terminal has already been restored.
    """

    def __init__(self, bindings: Dict[int, Action],
                 terminal: Optional[TerminalModeSwitch] = None,
                 reader: Optional[KeystrokeReader] = None,
                 interrupt_key: int = KEY_INTERRUPT):
        if interrupt_key in bindings:
            raise ValueError("The interrupt key cannot be rebound.")
        self.bindings = dict(bindings)
        self.terminal = terminal or TerminalModeSwitch()
        self.reader = reader or KeystrokeReader()
        self.interrupt_key = interrupt_key
        self.state = SessionState.RAW_WAIT

    def run(self) -> SessionState:
        """Blocks until the user quits or an action ends the session."""
        self.state = SessionState.RAW_WAIT
        saved: Optional[TerminalState] = self.terminal.enter_raw()
        try:
            while True:
                key = self.reader.read_byte()

                if key == self.interrupt_key:
                    self.terminal.restore(saved)
                    saved = None
                    self.state = SessionState.TERMINATED
                    print(FAREWELL)
                    return self.state

                action = self.bindings.get(key)
                if action is None:
                    continue

                logger.debug("Dispatching key 0x%02x", key)
                self.state = SessionState.ACTION_RUNNING
                self.terminal.restore(saved)
                saved = None

                if action() is ActionResult.END_SESSION:
                    self.state = SessionState.TERMINATED
                    return self.state

                saved = self.terminal.enter_raw()
                self.state = SessionState.RAW_WAIT
        finally:
            self.terminal.restore(saved)
