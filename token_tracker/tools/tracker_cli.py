"""
Operator command line for the token tracker database.

Usage:
    python -m token_tracker.tools.tracker_cli init
    python -m token_tracker.tools.tracker_cli list
    python -m token_tracker.tools.tracker_cli lookup --mint <MINT>
    python -m token_tracker.tools.tracker_cli lookup --name FOO --creator <WALLET>
    python -m token_tracker.tools.tracker_cli reputation <WALLET>
    python -m token_tracker.tools.tracker_cli classify <MINT> --scam --rugged
    python -m token_tracker.tools.tracker_cli check <MINT>
"""

from __future__ import annotations

import argparse
import sys

from token_tracker.authority.checker import RpcAuthorityChecker
from token_tracker.config import get_settings
from token_tracker.config.env import get_db_path, mask_rpc_url
from token_tracker.core.exceptions import TrackerError
from token_tracker.database import Database, TokenRecord, get_database
from token_tracker.ingestion.handler import TokenIngestor
from token_tracker.tracker_logging import get_logger

logger = get_logger(__name__)


def _format_token(t: TokenRecord) -> str:
    flags = []
    if t.is_scam:
        flags.append("SCAM")
    if t.is_rugged:
        flags.append("RUGGED")
    return (
        f"{t.id:>5}  {t.time:>11}  {t.name:<20} {t.mint}  creator={t.creator}  "
        f"dup={t.duplicate_count}  {','.join(flags) or '-'}"
    )


def _print_tokens(tokens: list[TokenRecord]) -> None:
    if not tokens:
        print("[tracker] No tokens")
        return
    for t in tokens:
        print(_format_token(t))
    print(f"[tracker] {len(tokens)} token(s)")


def _cmd_list(db: Database, args: argparse.Namespace) -> int:
    _print_tokens(db.list_all())
    return 0


def _cmd_lookup(db: Database, args: argparse.Namespace) -> int:
    if args.mint:
        _print_tokens(db.find_by_mint(args.mint))
        return 0
    if not args.name and not args.creator:
        print("[tracker] lookup needs --mint, or --name and/or --creator", file=sys.stderr)
        return 2
    _print_tokens(db.find_by_name_or_creator(args.name or "", args.creator or ""))
    return 0


def _cmd_reputation(db: Database, args: argparse.Namespace) -> int:
    rep = db.get_reputation(args.creator)
    if rep is None:
        print(f"[tracker] Creator {args.creator} not seen")
        return 1
    print(
        f"[tracker] {rep.creator} total={rep.total_tokens} scam={rep.scam_count} "
        f"rugged={rep.rugged_count} scam_ratio={rep.scam_ratio:.2f} rugged_ratio={rep.rugged_ratio:.2f}"
    )
    return 0


def _cmd_classify(db: Database, args: argparse.Namespace) -> int:
    if not args.scam and not args.rugged:
        print("[tracker] classify needs --scam and/or --rugged", file=sys.stderr)
        return 2
    if not db.classify(args.mint, is_scam=args.scam, is_rugged=args.rugged):
        print(f"[tracker] No token with mint {args.mint}")
        return 1
    print(f"[tracker] Classified {args.mint} scam={args.scam} rugged={args.rugged}")
    return 0


def _cmd_check(db: Database, args: argparse.Namespace) -> int:
    settings = get_settings()
    logger.info("authority_check_start", mint=args.mint, rpc=mask_rpc_url(settings.solana_rpc_url))
    ingestor = TokenIngestor(db, RpcAuthorityChecker.from_settings(settings))
    secure = ingestor.apply_authority_verdict(args.mint)
    print(f"[tracker] {args.mint} secure={secure}")
    return 0 if secure else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Inspect and maintain the token tracker database.")
    ap.add_argument("--db", dest="db_path", default=None, help="SQLite file (overrides TRACKER_DB_PATH)")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create tables if missing")
    sub.add_parser("list", help="List every tracked token")

    lookup = sub.add_parser("lookup", help="Find tokens by mint, or by name/creator")
    lookup.add_argument("--mint", default=None)
    lookup.add_argument("--name", default=None)
    lookup.add_argument("--creator", default=None)

    rep = sub.add_parser("reputation", help="Show a creator's scam/rug counters")
    rep.add_argument("creator")

    cls = sub.add_parser("classify", help="Flag a token as scam and/or rugged")
    cls.add_argument("mint")
    cls.add_argument("--scam", action="store_true")
    cls.add_argument("--rugged", action="store_true")

    check = sub.add_parser("check", help="Run the authority check and flag insecure tokens as scam")
    check.add_argument("mint")
    return ap


_COMMANDS = {
    "list": _cmd_list,
    "lookup": _cmd_lookup,
    "reputation": _cmd_reputation,
    "classify": _cmd_classify,
    "check": _cmd_check,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        db_path = args.db_path or get_db_path()
        with get_database(db_path) as db:
            if args.command == "init":
                print(f"[tracker] DB ready at {db_path}")
                return 0
            return _COMMANDS[args.command](db, args)
    except TrackerError as e:
        logger.error("tracker_cli_failed", command=args.command, error=str(e))
        print(f"[tracker] {args.command} failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
