# service/cli.py
"""
Command-line entrypoints.

Subcommands
-----------
serve
    Starts the APScheduler loop (service.scheduler.start) and blocks until
    SIGINT/SIGTERM.

run [--module M] [--kwargs k=v ...] [--sources A,B] [--dry-run] [--json]
    One ad-hoc scrape via runner.run_module_once(); prints the summary.

list-sites [--sites-path FILE]
    Prints the job-site registry (built-in or from a JSON file).

list-jobs
    Prints scheduled jobs from the service config.

validate-config
    Loads/validates the service config; nonzero exit on error.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from service import config_schema as _config_schema
from service import logging_utils as L
from service import runner as _runner
from service import scheduler as _scheduler

LOG = logging.getLogger("service.cli")


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_kv_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """
    key=value strings -> dict. JSON-looking values (numbers, true/false,
    arrays, objects) are decoded; anything else stays a string.
    """
    out: dict[str, Any] = {}
    for raw in pairs:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"--kwargs item must be key=value (got {raw!r})")
        k, v = (s.strip() for s in raw.split("=", 1))
        if not k:
            raise argparse.ArgumentTypeError(f"Invalid key in --kwargs item {raw!r}")
        try:
            out[k] = json.loads(v)
        except json.JSONDecodeError:
            out[k] = v
    return out


def _print_table(rows: Sequence[Sequence[str]], headers: Sequence[str]) -> None:
    widths = [max(len(str(h)), *(len(str(r[i])) for r in rows)) if rows else len(h) for i, h in enumerate(headers)]
    sep = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    print(sep)
    print("| " + " | ".join(str(h).ljust(w) for h, w in zip(headers, widths)) + " |")
    print(sep)
    for row in rows:
        print("| " + " | ".join(str(c).ljust(w) for c, w in zip(row, widths)) + " |")
    print(sep)


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


# ------------------------------ Subcommands ----------------------------------
def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        _config_schema.load_config(args.config)
    except _config_schema.ConfigError as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1
    print("OK: configuration is valid.")
    return 0


def cmd_list_jobs(args: argparse.Namespace) -> int:
    try:
        cfg = _config_schema.load_config(args.config)
    except _config_schema.ConfigError as e:
        print(f"ERROR: failed to list jobs: {e}", file=sys.stderr)
        return 1
    rows = [(j["id"], j["module"], json.dumps(j["trigger"], default=str)) for j in cfg["jobs"]]
    if not rows:
        print("No jobs found in config.")
        return 0
    _print_table(rows, headers=("JOB", "MODULE", "TRIGGER"))
    return 0


def cmd_list_sites(args: argparse.Namespace) -> int:
    from modules.job_scrape.lib.config import ConfigError, load_sites_file
    from modules.job_scrape.lib.sites import get_job_sites

    try:
        sites = load_sites_file(args.sites_path) if args.sites_path else get_job_sites()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    rows = [
        (s.source, s.feed_type.value, str(s.retry_attempts), f"{s.timeout_seconds:g}s", s.url)
        for s in sites
    ]
    _print_table(rows, headers=("SOURCE", "FEED", "RETRIES", "TIMEOUT", "URL"))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    start_time = time.monotonic()
    kwargs = _parse_kv_pairs(args.kwargs or [])
    if args.sources:
        kwargs["sources"] = args.sources
    if args.dry_run:
        kwargs["dry_run"] = True
    LOG.debug("Run module %s with kwargs=%s", args.module, kwargs)

    try:
        meta, run_id = _runner.run_module_once(
            module=args.module,
            kwargs=kwargs,
            trigger_type="adhoc",
            timeout_sec=args.timeout,
        )
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        print(f"FAILURE: {e}", file=sys.stderr)
        L.write_error_log({
            "ts": _now_iso(),
            "where": "cli.run",
            "module": args.module,
            "kwargs": kwargs,
            "error": repr(e),
            "duration_ms": int((time.monotonic() - start_time) * 1000),
        })
        return 1

    if args.json:
        print(json.dumps(meta, indent=2, default=str))
    else:
        print(f"DONE: {meta.get('message', 'Module run completed.')} (run_id={run_id})")
        by_source = meta.get("by_source") or {}
        if by_source:
            rows = [
                (src, str(info.get("jobs", 0)), "ok" if info.get("ok") else "; ".join(info.get("errors") or []))
                for src, info in sorted(by_source.items())
            ]
            _print_table(rows, headers=("SOURCE", "JOBS", "STATUS"))
        if meta.get("used_fallback"):
            print("NOTE: no site returned jobs; fallback jobs were used.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the scheduler until a termination signal arrives."""
    L.write_activity_log({"ts": _now_iso(), "event": "serve_start"})
    stop_event = threading.Event()

    def _graceful_shutdown(signum=None, frame=None):
        LOG.info("Signal %s received; initiating shutdown...", signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _graceful_shutdown)

    try:
        controller = _scheduler.start(config_path=args.config)
    except _config_schema.ConfigError as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1

    try:
        while not stop_event.is_set():
            time.sleep(0.3)
    except KeyboardInterrupt:
        return 130
    finally:
        controller.stop()
        controller.join(timeout=10.0)
        L.write_activity_log({"ts": _now_iso(), "event": "serve_stop"})
    return 0


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="python -m service.cli", description="Job scrape service tools")
    p.add_argument("--config", help="Path to service config (falls back to CONFIG_PATH).")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("serve", help="Run the scheduler loop.")
    sp.set_defaults(func=cmd_serve)

    sp = sub.add_parser("run", help="Run one scrape now.")
    sp.add_argument("--module", default=_runner.DEFAULT_MODULE, help="Module to run (default: %(default)s).")
    sp.add_argument("--kwargs", metavar="k=v", nargs="*", help="Extra module kwargs (JSON values supported).")
    sp.add_argument("--sources", help="Comma-separated source names to scrape (default: all).")
    sp.add_argument("--dry-run", action="store_true", help="Scrape and report without touching the database.")
    sp.add_argument("--timeout", type=int, default=None, help="Abort after this many seconds.")
    sp.add_argument("--json", action="store_true", help="Print the full summary as JSON.")
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("list-sites", help="Print the job-site registry.")
    sp.add_argument("--sites-path", help="JSON site list to show instead of the built-in registry.")
    sp.set_defaults(func=cmd_list_sites)

    sp = sub.add_parser("list-jobs", help="Print scheduled jobs from config.")
    sp.set_defaults(func=cmd_list_jobs)

    sp = sub.add_parser("validate-config", help="Verify configuration correctness.")
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
