# main.py
from __future__ import annotations
import argparse
import time
import structlog
from typetrace.logging_config import configure_logging

def build_engine(config_path: str | None = None, root: str = "."):
    """Wire the engine to the keyboard hook and a folder-backed store."""
    from tracecore.hooks.keyboard_listener import KeyboardHook
    from tracecore.storage.file_store import FileStore
    from tracecore.utils.notifier import LogNotifier
    from typetrace.analytics.config import load_config
    from typetrace.controller.runner import TelemetryEngine

    cfg = load_config(config_path)
    notifier = LogNotifier()
    store = FileStore(root, on_error=lambda path, e: notifier.notify(f"Could not write {path}: {e}"))
    engine = TelemetryEngine(store, source=KeyboardHook(), notifier=notifier, config=cfg)
    return engine, store

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="typetrace", description="Typing telemetry recorder")
    ap.add_argument("--config", default="typetrace.json")
    ap.add_argument("--root", default=".")
    ap.add_argument("--debug", action="store_true")
    return ap.parse_args(argv)

def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    configure_logging(debug=args.debug)
    log = structlog.get_logger()

    log.info("app.start", msg="Recording typing telemetry, Ctrl+C to stop")
    engine, store = build_engine(args.config, args.root)
    engine.start()
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
        store.close()
    log.info("app.stop", msg="Exited cleanly")

if __name__ == "__main__":
    main()
