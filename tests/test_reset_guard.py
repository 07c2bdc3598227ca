# tests/test_reset_guard.py
from typetrace.policy.reset_guard import ResetGuard

def test_exact_phrase_allows():
    v = ResetGuard().decide("DELETE")
    assert v.allowed and v.reason == "confirmed"

def test_surrounding_whitespace_is_ignored():
    assert ResetGuard().decide("  DELETE\n").allowed

def test_anything_else_is_refused():
    g = ResetGuard()
    assert g.decide(None).reason == "missing-confirmation"
    for token in ("", "delete", "DELETE ALL", "DEL ETE"):
        v = g.decide(token)
        assert not v.allowed
        assert v.reason == "phrase-mismatch"

def test_custom_phrase():
    assert ResetGuard(phrase="wipe it").decide("wipe it").allowed
    assert not ResetGuard(phrase="wipe it").decide("DELETE").allowed
