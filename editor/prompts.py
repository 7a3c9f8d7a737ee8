"""
User interaction ports for the editor.

The persistence gateway never talks to a UI directly. It asks a
ConfirmationPort before discarding or risking data and reports failures
to a NotificationSink. Adapters:

- TkPrompt: native tkinter message boxes for desktop use
- StaticConfirm: fixed answer, for scripts and tests
- LogNotifier: forwards notifications to the logging module
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import tkinter as tk

logger = logging.getLogger(__name__)


class ConfirmationPort(Protocol):
    def confirm(self, title: str, message: str) -> bool:
        """Ask a yes/no question. True means proceed."""
        ...


class NotificationSink(Protocol):
    def error(self, title: str, message: str) -> None:
        ...

    def info(self, title: str, message: str) -> None:
        ...


class StaticConfirm:
    """
    Answers every confirmation with the same value.

    Attributes:
        answer: Value returned by confirm()
        asked: (title, message) of every question, in order
    """

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.asked: list[tuple[str, str]] = []

    def confirm(self, title: str, message: str) -> bool:
        self.asked.append((title, message))
        return self.answer


class LogNotifier:
    """Writes notifications to the log and keeps them for inspection."""

    def __init__(self):
        self.errors: list[tuple[str, str]] = []
        self.infos: list[tuple[str, str]] = []

    def error(self, title: str, message: str) -> None:
        self.errors.append((title, message))
        logger.error("%s: %s", title, message)

    def info(self, title: str, message: str) -> None:
        self.infos.append((title, message))
        logger.info("%s: %s", title, message)


def _get_tk_root() -> tk.Tk:
    """Create a hidden, topmost Tk root window for dialogs."""
    import tkinter as tk

    root = tk.Tk()
    root.withdraw()
    root.attributes('-topmost', True)
    return root


class TkPrompt:
    """Confirmation and notification through tkinter message boxes."""

    def confirm(self, title: str, message: str) -> bool:
        from tkinter import messagebox

        root = _get_tk_root()
        try:
            return bool(messagebox.askyesno(title, message))
        finally:
            root.destroy()

    def error(self, title: str, message: str) -> None:
        from tkinter import messagebox

        logger.error("%s: %s", title, message)
        root = _get_tk_root()
        try:
            messagebox.showerror(title, message)
        finally:
            root.destroy()

    def info(self, title: str, message: str) -> None:
        from tkinter import messagebox

        root = _get_tk_root()
        try:
            messagebox.showinfo(title, message)
        finally:
            root.destroy()
