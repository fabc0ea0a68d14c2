"""
Simulated typing into the focused terminal.

Two strategies are available:

    ChunkedTyping    words typed in random 2-4 character bursts (default)
    CharacterTyping  one character at a time at a fixed rate

Both deliver exactly the same text for a given command; only the cadence
differs.
"""

import logging
import random
import time
from typing import List, Optional

from .automation import Automation
from .terminal import TerminalController

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_DELAY = 0.05  # seconds between chunks
MIN_CHUNK_SIZE = 2
MAX_CHUNK_SIZE = 4

# Per-character delays for CharacterTyping
CHAR_DELAYS = {
    "fast": 0.008,  # ~150 WPM
    "normal": 0.024,  # ~50 WPM
}


def split_chunks(
    word: str,
    rng: random.Random,
    min_size: int = MIN_CHUNK_SIZE,
    max_size: int = MAX_CHUNK_SIZE,
) -> List[str]:
    """Split a word into contiguous chunks of random size."""
    chunks = []
    i = 0
    while i < len(word):
        size = rng.randint(min_size, max_size)
        chunks.append(word[i:i + size])
        i += size
    return chunks


class ChunkedTyping:
    """Types words in short random bursts with a space keystroke between words."""

    name = "chunked"

    def __init__(
        self,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
        rng: Optional[random.Random] = None,
    ):
        self.chunk_delay = chunk_delay
        self.rng = rng or random.Random()

    def type_text(self, automation: Automation, text: str) -> None:
        words = text.split()
        for index, word in enumerate(words):
            for chunk in split_chunks(word, self.rng):
                automation.send_keystrokes(chunk)
                time.sleep(self.chunk_delay)
            if index < len(words) - 1:
                automation.send_keystrokes(" ")


class CharacterTyping:
    """Types one character per keystroke at a fixed delay."""

    name = "character"

    def __init__(self, char_delay: float = CHAR_DELAYS["normal"]):
        self.char_delay = char_delay

    @classmethod
    def preset(cls, speed: str) -> "CharacterTyping":
        if speed not in CHAR_DELAYS:
            raise ValueError(
                f"Unknown typing speed {speed!r}, expected one of {sorted(CHAR_DELAYS)}"
            )
        return cls(CHAR_DELAYS[speed])

    def type_text(self, automation: Automation, text: str) -> None:
        for char in text:
            automation.send_keystrokes(char)
            time.sleep(self.char_delay)


def make_strategy(mode: str, chunk_delay: float = DEFAULT_CHUNK_DELAY):
    """Build a typing strategy from a mode name: chunked, fast or normal."""
    if mode == "chunked":
        return ChunkedTyping(chunk_delay=chunk_delay)
    return CharacterTyping.preset(mode)


class InputDriver:
    """
    Types commands into the terminal and submits them.

    Focus is re-verified before every command. If it cannot be established
    the FocusError propagates and nothing is typed.
    """

    def __init__(
        self,
        automation: Automation,
        terminal: TerminalController,
        strategy=None,
    ):
        self.automation = automation
        self.terminal = terminal
        self.strategy = strategy or ChunkedTyping()

    def type_command(self, command: str) -> None:
        """Type a command line and press Return. Does not wait for it to run."""
        self.terminal.ensure_focused()
        logger.debug(f"Typing: {command}")
        self.strategy.type_text(self.automation, command)
        self.automation.press_return()
