# tests/test_entrypoints.py
# Recorder argument parsing; nothing here starts the keyboard hook.
from main import parse_args

def test_recorder_args_from_list():
    args = parse_args(["--config", "cfg.json", "--root", "/tmp/stats"])
    assert args.config == "cfg.json"
    assert args.root == "/tmp/stats"
    assert args.debug is False

def test_recorder_defaults():
    args = parse_args([])
    assert args.config == "typetrace.json"
    assert args.root == "."
