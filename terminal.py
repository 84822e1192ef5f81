# terminal.py
import logging
import os
import sys
import termios
from contextlib import contextmanager
from typing import List, Optional

from errors import InputError, TerminalUnavailable

logger = logging.getLogger(__name__)

# Indices into the list returned by termios.tcgetattr
IFLAG, OFLAG, CFLAG, LFLAG, ISPEED, OSPEED, CC = range(7)


class TerminalState:
    """Snapshot of the terminal attributes taken when raw mode was entered."""

    def __init__(self, fd: int, attrs: List):
        self.fd = fd
        self._attrs = attrs
        self.consumed = False


class TerminalModeSwitch:
    """Toggles one terminal between cooked and raw input.

    Raw here means unbuffered and silent, with control characters such as
    Ctrl+C and Ctrl+S delivered as plain bytes instead of being turned into
    signals or flow control by the tty driver. Output processing is left
    alone so printed newlines still behave.
    """

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdin

    def _fileno(self) -> int:
        try:
            fd = self.stream.fileno()
        except (AttributeError, ValueError, OSError) as e:
            raise TerminalUnavailable(f"Standard input has no file descriptor: {e}") from e
        if not os.isatty(fd):
            raise TerminalUnavailable("Standard input is not an interactive terminal.")
        return fd

    def enter_raw(self) -> TerminalState:
        fd = self._fileno()
        try:
            original = termios.tcgetattr(fd)
            raw = termios.tcgetattr(fd)
            raw[IFLAG] &= ~termios.IXON
            raw[LFLAG] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
            raw[CC][termios.VMIN] = 1
            raw[CC][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSANOW, raw)
        except termios.error as e:
            raise TerminalUnavailable(f"Failed to set raw mode: {e}") from e
        logger.debug("Entered raw mode on fd %d", fd)
        return TerminalState(fd, original)

    def restore(self, state: Optional[TerminalState]):
        """Puts back the attributes captured by enter_raw; safe to repeat."""
        if state is None or state.consumed:
            return
        state.consumed = True
        try:
            termios.tcsetattr(state.fd, termios.TCSADRAIN, state._attrs)
        except termios.error as e:
            raise TerminalUnavailable(f"Failed to restore terminal: {e}") from e
        logger.debug("Restored terminal mode on fd %d", state.fd)

    @contextmanager
    def raw(self):
        state = self.enter_raw()
        try:
            yield state
        finally:
            self.restore(state)


class KeystrokeReader:
    """Reads standard input one byte at a time. Only meaningful in raw mode."""

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdin

    def read_byte(self) -> int:
        try:
            data = os.read(self.stream.fileno(), 1)
        except (OSError, ValueError) as e:
            raise InputError(f"Error reading input: {e}") from e
        if not data:
            raise InputError("Standard input was closed.")
        return data[0]
