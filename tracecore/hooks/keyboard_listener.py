# tracecore/hooks/keyboard_listener.py
from __future__ import annotations
from typing import Set, Optional
from pynput import keyboard
import structlog

from .events import KeyEvent, KeyAction, DELETE_KEY, MODIFIERS
from .line_mirror import LineMirror
from .replay import Subscribers, KeyCallback

log = structlog.get_logger()

# left/right variants collapse onto one modifier name; cmd is the macOS / super key
MOD_KEYS = {
    getattr(keyboard.Key, f"{mod}{side}"): mod
    for mod in MODIFIERS
    for side in ("", "_l", "_r")
}

NAMED_KEYS = {
    keyboard.Key.space: " ",
    keyboard.Key.backspace: DELETE_KEY,
    keyboard.Key.enter: "Enter",
    keyboard.Key.tab: "Tab",
}

def _key_to_str(k: keyboard.Key | keyboard.KeyCode) -> str:
    try:
        if k in NAMED_KEYS:
            return NAMED_KEYS[k]
        if isinstance(k, keyboard.KeyCode):
            return k.char if k.char else f"keycode_{k.vk or 'unknown'}"
        return str(k).split(".")[-1]
    except Exception:
        return "unknown"

class KeyboardHook:
    """Background pynput keyboard listener publishing KeyEvents to subscribers."""
    def __init__(self):
        self._mods: Set[str] = set()
        self._listener: Optional[keyboard.Listener] = None
        self._mirror = LineMirror()
        self.subscribers = Subscribers()

    def subscribe(self, callback: KeyCallback) -> None:
        self.subscribers.add(callback)
        self.start()

    def unsubscribe(self, callback: KeyCallback) -> None:
        self.subscribers.remove(callback)
        if not len(self.subscribers):
            self.stop()

    def start(self) -> None:
        if self._listener and self._listener.running:
            return
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
            suppress=False
        )
        self._listener.daemon = True
        self._listener.start()
        log.info("kbd.start")

    def stop(self) -> None:
        if self._listener:
            self._listener.stop()
            self._listener = None
        log.info("kbd.stop")

    def _on_press(self, key):
        name = _key_to_str(key)
        if key in MOD_KEYS:
            self._mods.add(MOD_KEYS[key])
        mods = set(self._mods)
        # context must be taken before the mirror applies this key
        ev = KeyEvent(key=name, action=KeyAction.DOWN, mods=mods, context=self._mirror.snapshot())
        self._mirror.apply(name, mods)
        self._publish(ev)

    def _on_release(self, key):
        name = _key_to_str(key)
        if key in MOD_KEYS:
            self._mods.discard(MOD_KEYS[key])
        self._publish(KeyEvent(key=name, action=KeyAction.UP, mods=set(self._mods)))

    def _publish(self, ev: KeyEvent) -> None:
        try:
            self.subscribers.emit(ev)
        except Exception as e:
            log.warning("kbd.subscriber.error", err=str(e))
