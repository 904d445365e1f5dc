"""Message box implementations of the Confirmation and Notifier collaborators."""

from __future__ import annotations

import tkinter as tk
from tkinter import messagebox

from ..services.navigation_guard import ConfirmResult


class MessageBoxConfirmation:
    """Yes/no confirmation backed by tkinter.messagebox.

    The dialog is modal, so ask() answers synchronously.
    """

    def __init__(self, parent: tk.Misc | None = None):
        self.parent = parent

    def ask(self, title: str, message: str) -> ConfirmResult:
        confirmed = messagebox.askyesno(title, message, parent=self.parent)
        return ConfirmResult.CONFIRMED if confirmed else ConfirmResult.CANCELLED


class MessageBoxNotifier:
    """Info and error messages backed by tkinter.messagebox."""

    def __init__(self, parent: tk.Misc | None = None):
        self.parent = parent

    def info(self, title: str, message: str) -> None:
        messagebox.showinfo(title, message, parent=self.parent)

    def error(self, title: str, message: str) -> None:
        messagebox.showerror(title, message, parent=self.parent)
