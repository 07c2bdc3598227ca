from __future__ import annotations
import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import structlog

log = structlog.get_logger()

MIN_AUTOSAVE_S = 1.0

@dataclass(frozen=True)
class TrackerConfig:
    # session / sampling (seconds)
    idle_threshold_s: float = 120.0   # gap that splits sessions
    window_s: float = 60.0            # one activity window
    autosave_interval_s: float = 60.0

    # storage layout
    base_dir: str = "typing-stats"
    tracked_folders: Tuple[str, ...] = ()

    # reports
    rest_weekday: int = 6             # datetime.weekday(): Monday=0 .. Sunday=6
    top_deleted_limit: int = 20

    # destructive reset
    reset_phrase: str = "DELETE"

    # simulated typing
    sim_base_delay_s: float = 0.02
    sim_error_chance: float = 0.06
    sim_correction_delay_s: float = 0.25

    @property
    def autosave_period_s(self) -> float:
        return max(MIN_AUTOSAVE_S, self.autosave_interval_s)

def config_from_dict(data: Dict[str, Any], base: Optional[TrackerConfig] = None) -> TrackerConfig:
    """Overlay known keys onto a config; unknown keys are logged and ignored."""
    cfg = base or TrackerConfig()
    known = {f.name for f in fields(TrackerConfig)}
    updates: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            log.debug("config.unknown_key", key=key)
            continue
        checked = _coerce(getattr(cfg, key), value)
        if checked is None:
            log.warning("config.bad_value", key=key, value=repr(value))
            continue
        updates[key] = checked
    return replace(cfg, **updates)

def _coerce(default: Any, value: Any) -> Any:
    """Value shaped like the field's default, or None when it does not fit."""
    if isinstance(default, tuple):
        # a bare string would split into characters
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            return None
        return tuple(value)
    if isinstance(value, bool) or isinstance(default, bool):
        return value if type(value) is type(default) else None
    if isinstance(default, float):
        return float(value) if isinstance(value, (int, float)) else None
    if isinstance(default, int):
        return value if isinstance(value, int) else None
    if isinstance(default, str):
        return value if isinstance(value, str) else None
    return value

def load_config(path: Optional[str | Path]) -> TrackerConfig:
    if path is None:
        return TrackerConfig()
    p = Path(path)
    if not p.is_file():
        log.info("config.defaults", path=str(p))
        return TrackerConfig()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("config.load.error", path=str(p), err=str(e))
        return TrackerConfig()
    if not isinstance(data, dict):
        log.warning("config.load.error", path=str(p), err="settings must be a JSON object")
        return TrackerConfig()
    return config_from_dict(data)
