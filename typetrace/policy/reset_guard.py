from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

@dataclass
class Verdict:
    allowed: bool
    reason: str

@dataclass
class ResetGuard:
    """Gate for the destructive wipe: only the exact phrase lets it through."""
    phrase: str = "DELETE"

    def decide(self, token: Optional[str]) -> Verdict:
        if token is None:
            return Verdict(False, "missing-confirmation")
        if token.strip() != self.phrase:
            return Verdict(False, "phrase-mismatch")
        return Verdict(True, "confirmed")
