from __future__ import annotations

import logging
from typing import Callable

import pyperclip

logger = logging.getLogger(__name__)

ClipboardWriter = Callable[[str], None]


def copy_to_clipboard(text: str) -> None:
    """Place ``text`` on the system clipboard.

    Raises ``pyperclip.PyperclipException`` when no clipboard mechanism is
    available (typical for headless servers).
    """

    pyperclip.copy(text)
    logger.debug("Copied %d characters to the system clipboard", len(text))
