import argparse
import json
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import __version__
from .cache import NameCache
from .config import Settings, load_settings
from .logger import StructuredLogger, get_logger
from .lookup import NameLookupClient
from .panel import HistoryPanel
from .retry import RetryPolicy


def build_cache(settings: Settings, logger: Optional[StructuredLogger] = None) -> NameCache:
    """Wire a NameCache from settings."""
    logger = logger or get_logger(level=settings.log_level, log_dir=settings.log_dir)
    client = NameLookupClient(base_url=settings.base_url, timeout=settings.timeout, logger=logger)
    policy = RetryPolicy(max_attempts=settings.max_attempts, base_delay=settings.base_delay)
    return NameCache(client, policy, max_workers=settings.max_workers, logger=logger)


def load_history(path: Path) -> list:
    """Read a history file: a JSON list of entries or {"history": [...]}."""
    if not path.exists():
        raise SystemExit(f"History file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SystemExit(f"History file is not valid JSON: {path} ({e})")
    if isinstance(data, dict):
        data = data.get("history")
    if not isinstance(data, list):
        raise SystemExit("History file must contain a list of entries or a 'history' list")
    return [entry for entry in data if isinstance(entry, dict)]


def _settings_from_args(args: argparse.Namespace) -> Settings:
    try:
        settings = load_settings()
        if args.timeout is not None:
            settings = replace(settings, timeout=args.timeout)
    except ValueError as e:
        raise SystemExit(f"Invalid configuration: {e}")
    return settings


def _wait(cache: NameCache, seconds: float) -> None:
    if not cache.wait_idle(timeout=seconds):
        cache.logger.warning("Some names are still resolving", pending=cache.pending_count())


def cmd_resolve(args: argparse.Namespace) -> None:
    if any(not s.strip() for s in args.smiles):
        raise SystemExit("SMILES arguments must not be blank")
    settings = _settings_from_args(args)
    with build_cache(settings) as cache:
        for smiles in args.smiles:
            cache.get_or_resolve(smiles)
        _wait(cache, args.wait)
        for smiles in args.smiles:
            print(f"{smiles} -> {cache.get_or_resolve(smiles)}")
        if args.verbose:
            cache.logger.log_metrics_summary()


def cmd_history(args: argparse.Namespace) -> None:
    settings = _settings_from_args(args)
    history = load_history(Path(args.input))
    if not history:
        print("No history entries.")
        return
    with build_cache(settings) as cache:
        panel = HistoryPanel(cache, history)
        _wait(cache, args.wait)
        for row in panel.rows():
            entry_id = row.entry_id if row.entry_id is not None else "-"
            print(f"[{entry_id}] {row.label}")
        panel.detach()
        if args.verbose:
            cache.logger.log_metrics_summary()


def main(argv=None):
    parser = argparse.ArgumentParser(prog="chemnames", description="Resolve SMILES to display names via PubChem")
    parser.add_argument("--version", action="store_true", help="Show version")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--timeout", type=float, help="HTTP timeout per request in seconds (or set CHEMNAMES_TIMEOUT)")
    common.add_argument("--wait", type=float, default=30.0, help="Seconds to wait for lookups before printing (default 30)")
    common.add_argument("--verbose", action="store_true", help="Log lookup metrics when done")

    subparsers = parser.add_subparsers(dest="command")
    res = subparsers.add_parser("resolve", parents=[common], help="Resolve one or more SMILES strings")
    res.add_argument("smiles", nargs="+", help="SMILES strings")
    res.set_defaults(func=cmd_resolve)

    his = subparsers.add_parser("history", parents=[common], help="Label the entries of a history JSON file")
    his.add_argument("--input", required=True, help="Path to history JSON")
    his.set_defaults(func=cmd_history)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
