from __future__ import annotations
from typing import Set

from .events import EditContext, DELETE_KEY

class LineMirror:
    """
    Best-effort copy of the line under the cursor, rebuilt from keystrokes.
    A global hook cannot see the editor buffer, so the context handed out at
    key-press is the text typed since the last Enter.
    """
    def __init__(self):
        self._text = ""

    def snapshot(self) -> EditContext:
        return EditContext(column=len(self._text), line=self._text)

    def apply(self, key: str, mods: Set[str]) -> None:
        if "ctrl" in mods or "cmd" in mods:
            return
        if key == DELETE_KEY:
            self._text = self._text[:-1]
        elif key == "Enter":
            self._text = ""
        elif len(key) == 1:
            self._text += key
