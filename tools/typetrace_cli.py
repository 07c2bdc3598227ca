from __future__ import annotations
import argparse, sys, time

def _offline_engine(args):
    """Engine over the stored state without a key hook (recorder must not be running)."""
    from tracecore.storage.file_store import FileStore
    from tracecore.utils.notifier import RecordingNotifier
    from typetrace.analytics.config import load_config
    from typetrace.controller.runner import TelemetryEngine

    cfg = load_config(args.config)
    notifier = RecordingNotifier()
    store = FileStore(args.root, on_error=lambda path, e: notifier.notify(f"Could not write {path}: {e}"))
    engine = TelemetryEngine(store, source=None, notifier=notifier, config=cfg)
    return engine, store, notifier

def _finish(store, notifier) -> None:
    store.flush()
    store.close()
    for msg in notifier.messages:
        print(msg)

def main():
    ap = argparse.ArgumentParser(prog="typetrace", description="Typing telemetry tools")
    ap.add_argument("--config", default="typetrace.json")
    ap.add_argument("--root", default=".")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run", help="Record key events until Ctrl+C")

    p_report = sub.add_parser("report", help="Rebuild and print a month or year report")
    p_report.add_argument("--year", type=int, required=True)
    p_report.add_argument("--month", type=int)

    sub.add_parser("end-streak", help="Close the current focus streak and save")
    sub.add_parser("purge-vim", help="Drop vim shortcut counts from the current day")

    p_wipe = sub.add_parser("wipe", help="Delete every statistics file")
    p_wipe.add_argument("--confirm", help="must be the exact confirmation phrase")

    p_sim = sub.add_parser("simulate", help="Feed a deterministic typing run into today's record")
    p_sim.add_argument("--size", type=int, default=300)
    p_sim.add_argument("--seed", type=int, default=0)

    args = ap.parse_args()

    from typetrace.logging_config import configure_logging
    configure_logging(debug=False, json_lines=False)

    if args.cmd == "run":
        from main import main as run_main
        run_main(["--config", args.config, "--root", args.root])
        return

    if args.cmd == "report":
        from tracecore.storage.file_store import FileStore
        from typetrace.analytics.config import load_config
        from typetrace.controller.rollup import RollupCascade
        from typetrace.report.markdown import render_month, render_year

        cfg = load_config(args.config)
        store = FileStore(args.root)
        cascade = RollupCascade(store, cfg)
        if args.month:
            agg = cascade.refresh_month(args.year, args.month)
            text = render_month(agg) if agg else None
        else:
            agg = cascade.refresh_year(args.year)
            text = render_year(agg) if agg else None
        store.flush()
        store.close()
        if text is None:
            print("No day records found.")
            sys.exit(1)
        print(text)
        return

    engine, store, notifier = _offline_engine(args)
    engine.open()

    if args.cmd == "end-streak":
        engine.end_streak()
    elif args.cmd == "purge-vim":
        engine.purge_vim()
    elif args.cmd == "wipe":
        ok = engine.wipe_all(args.confirm)
        if not ok:
            _finish(store, notifier)
            sys.exit(2)
    elif args.cmd == "simulate":
        from typetrace.analytics.simulation import SimulationPlan, lorem_text, simulate_typing
        cfg = engine.cfg
        plan = SimulationPlan(
            text=lorem_text(args.size),
            start=time.time(),
            base_delay_s=cfg.sim_base_delay_s,
            error_chance=cfg.sim_error_chance,
            correction_delay_s=cfg.sim_correction_delay_s,
            seed=args.seed,
        )
        for action in simulate_typing(plan):
            engine.apply(action, now=action.t_wall)
        engine.end_streak()
        t = engine.record.totals
        print(f"Simulated {t.chars_typed} chars, {t.chars_deleted} corrections, {t.words_typed} words")

    _finish(store, notifier)

if __name__ == "__main__":
    main()
