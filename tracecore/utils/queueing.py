# tracecore/utils/queueing.py
from __future__ import annotations
from queue import Queue, Full, Empty

def safe_put(q: Queue, item) -> bool:
    """
    Non-blocking put for the hook thread. A full queue loses its oldest entry
    to make room; returns True when that happened.
    """
    dropped = False
    while True:
        try:
            q.put_nowait(item)
            return dropped
        except Full:
            try:
                q.get_nowait()
            except Empty:
                continue
            # the dropped entry will never be processed
            q.task_done()
            dropped = True
