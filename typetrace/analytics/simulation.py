from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Iterator, List, Optional

from tracecore.hooks.events import Action, Deletion, TypedChar

LOREM = (
    "Lorem ipsum dolor sit amet, consectetur adipiscing elit. "
    "Vestibulum vulputate, nunc sit amet laoreet malesuada, "
    "risus mauris fermentum est, nec gravida justo erat sed nunc. "
)

@dataclass
class SimulationPlan:
    text: str
    start: float
    base_delay_s: float = 0.02
    error_chance: float = 0.06
    correction_delay_s: float = 0.25
    seed: int = 0

def lorem_text(size: int) -> str:
    reps = -(-size // len(LOREM))
    return (LOREM * reps)[:size]

def simulate_typing(plan: SimulationPlan) -> Iterator[Action]:
    """
    Finite, replayable typing run. Each action carries its synthetic timestamp
    in t_wall; the same plan always yields the same sequence.

    Letters are mistyped with probability error_chance: the wrong letter is
    typed, deleted after a pause, then the intended one follows.
    """
    rng = random.Random(plan.seed)
    t = plan.start
    base = plan.base_delay_s
    for ch in plan.text:
        if ch.isalpha() and rng.random() < plan.error_chance:
            wrong = chr(97 + rng.randrange(26))
            yield TypedChar(t_wall=t, char=wrong)
            t += plan.correction_delay_s + rng.random() * 0.1
            yield Deletion(t_wall=t, char=wrong)
            t += base + rng.random() * 0.1
        yield TypedChar(t_wall=t, char=ch)
        t += base + rng.random() * base

def summarize(actions: List[Action]) -> dict:
    typed = sum(1 for a in actions if isinstance(a, TypedChar))
    deleted = sum(1 for a in actions if isinstance(a, Deletion))
    last: Optional[float] = actions[-1].t_wall if actions else None
    return {"typed": typed, "corrections": deleted, "ends_at": last}
