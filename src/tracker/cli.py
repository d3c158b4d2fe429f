from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from advice.coach import BedrockCoach
from common.logging_utils import get_logger
from common.models import Account, MatchResult, Platform, Rank
from common.settings import AppConfig, load_settings
from engine.ban_status import BanStatus, ban_progress, remaining_ms
from store.account_store import AccountStore, SortBy
from store.errors import StoreError
from store.stats import account_stats, overall_stats


logger = get_logger(__name__)


def _parse_rank(value: str) -> Rank:
    try:
        return Rank.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown rank {value!r}") from exc


def _parse_platform(value: str) -> Platform:
    try:
        return Platform(value.strip().upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown platform {value!r}") from exc


def _parse_result(value: str) -> MatchResult:
    try:
        return MatchResult(value.strip().upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown result {value!r}") from exc


def _parse_sort(value: str) -> SortBy:
    try:
        return SortBy(value.strip().upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown sort order {value!r}") from exc


def _parse_time(value: str) -> int:
    """Epoch milliseconds or an ISO-8601 timestamp (naive means local time)."""

    text = value.strip()
    if text.isdigit():
        return int(text)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid time {value!r}") from exc
    return int(dt.timestamp() * 1000)


def _fmt_time(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _summary_line(account: Account) -> str:
    state = f"BANNED until {_fmt_time(account.ban_expires_at)}" if account.is_banned else "ready"
    return f"{account.id}  {account.name:<16} {account.rank.value:<11} {account.platform.value:<6} {state}"


def _cmd_add(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    account = store.add_account(args.name, args.rank, args.platform)
    store.save()
    print(account.id)
    return 0


def _cmd_update(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    account = store.update_account(args.account, name=args.name, rank=args.rank, platform=args.platform)
    store.save()
    print(_summary_line(account))
    return 0


def _cmd_delete(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    store.delete_account(args.account)
    store.save()
    return 0


def _cmd_list(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    for account in store.list_accounts(search=args.search, platform=args.platform, sort_by=args.sort):
        print(_summary_line(account))
    return 0


def _cmd_show(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    account = store.get(args.account)
    stats = account_stats(account)
    risk = store.risk_index(account.id)
    status = BanStatus(account.is_banned, account.ban_expires_at)

    print(_summary_line(account))
    print(f"games={stats.total} wins={stats.wins} losses={stats.losses} win_rate={stats.win_rate:.1f}%")
    if status.is_banned:
        hours = remaining_ms(status) / 3_600_000
        print(f"cooldown served={ban_progress(status):.1f}% remaining={hours:.1f}h")
    print(f"risk score={risk.score} level={risk.level.value}")
    for reason in risk.reasons:
        print(f"- {reason}")
    print(risk.description)
    if args.history:
        for record in reversed(account.history):
            hero = f" ({record.hero})" if record.hero else ""
            print(f"  {record.id}  {_fmt_time(record.timestamp)}  {record.result.value}{hero}")
    return 0


def _cmd_record(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    result = MatchResult.WIN if args.command == "win" else MatchResult.LOSS
    record = store.record_result(args.account, result, hero=args.hero, timestamp=args.at)
    store.save()
    account = store.get(args.account)
    print(record.id)
    if account.is_banned:
        print(f"account locked until {_fmt_time(account.ban_expires_at)}")
    return 0


def _cmd_edit_match(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    kwargs: dict[str, Any] = {"result": args.result, "timestamp": args.at}
    if args.hero is not None:
        kwargs["hero"] = args.hero
    store.edit_match(args.account, args.match, **kwargs)
    store.save()
    return 0


def _cmd_delete_match(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    store.delete_match(args.account, args.match)
    store.save()
    return 0


def _cmd_move(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    store.move_account(args.account, args.target)
    store.save()
    return 0


def _cmd_stats(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    stats = overall_stats(store.accounts)
    out = {
        "total_accounts": stats.total_accounts,
        "banned_accounts": stats.banned_accounts,
        "total_games": stats.total_games,
        "win_rate": round(stats.win_rate, 1),
        "main_platform": stats.main_platform.value,
        "rank_distribution": {r.value: n for r, n in stats.rank_distribution.items()},
        "platform_win_rates": {p.value: round(v, 1) for p, v in stats.platform_win_rates.items()},
    }
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


def _cmd_export(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    path = args.output or f"accounts_{datetime.now().date().isoformat()}.json"
    count = store.export_accounts(path)
    print(f"exported {count} account(s) to {path}")
    return 0


def _cmd_import(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    count = store.import_accounts(args.input, merge=args.merge)
    store.save()
    mode = "merged" if args.merge else "imported"
    print(f"{mode} {count} account(s)")
    return 0


def _cmd_advice(store: AccountStore, args: argparse.Namespace, cfg: AppConfig) -> int:
    account = store.get(args.account)
    print(BedrockCoach(cfg.advice).get_advice(account.rank, account.is_banned))
    return 0


_COMMANDS = {
    "add": _cmd_add,
    "update": _cmd_update,
    "delete": _cmd_delete,
    "list": _cmd_list,
    "show": _cmd_show,
    "win": _cmd_record,
    "loss": _cmd_record,
    "edit-match": _cmd_edit_match,
    "delete-match": _cmd_delete_match,
    "move": _cmd_move,
    "stats": _cmd_stats,
    "export": _cmd_export,
    "import": _cmd_import,
    "advice": _cmd_advice,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rankguard", description="Track game accounts, loss cooldowns and losing-streak risk"
    )
    parser.add_argument(
        "--config",
        default=str(Path("config") / "dev.yaml"),
        help="Path to YAML config (defaults to config/dev.yaml; missing file means defaults)",
    )
    parser.add_argument("--store", help="Accounts JSON file (overrides storage.path)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="Add an account")
    p.add_argument("name")
    p.add_argument("--rank", type=_parse_rank, default=Rank.BRONZE)
    p.add_argument("--platform", type=_parse_platform, default=Platform.WECHAT)

    p = sub.add_parser("update", help="Change name, rank or platform")
    p.add_argument("account")
    p.add_argument("--name")
    p.add_argument("--rank", type=_parse_rank)
    p.add_argument("--platform", type=_parse_platform)

    p = sub.add_parser("delete", help="Delete an account and its history")
    p.add_argument("account")

    p = sub.add_parser("list", help="List accounts")
    p.add_argument("--search", default="")
    p.add_argument("--platform", type=_parse_platform)
    p.add_argument("--sort", type=_parse_sort, default=SortBy.UPDATED)

    p = sub.add_parser("show", help="Show status, stats and risk index of one account")
    p.add_argument("account")
    p.add_argument("--history", action="store_true", help="Also print match history")

    for name in ("win", "loss"):
        p = sub.add_parser(name, help=f"Record a {name}")
        p.add_argument("account")
        p.add_argument("--hero")
        p.add_argument("--at", type=_parse_time, help="Match time (epoch ms or ISO-8601)")

    p = sub.add_parser("edit-match", help="Edit a recorded match")
    p.add_argument("account")
    p.add_argument("match")
    p.add_argument("--result", type=_parse_result)
    p.add_argument("--at", type=_parse_time)
    p.add_argument("--hero")

    p = sub.add_parser("delete-match", help="Delete a recorded match")
    p.add_argument("account")
    p.add_argument("match")

    p = sub.add_parser("move", help="Move an account to another account's position")
    p.add_argument("account")
    p.add_argument("target")

    sub.add_parser("stats", help="Aggregate statistics over all accounts")

    p = sub.add_parser("export", help="Export all accounts to JSON")
    p.add_argument("output", nargs="?")

    p = sub.add_parser("import", help="Import accounts from JSON")
    p.add_argument("input")
    p.add_argument("--merge", action="store_true", help="Keep current accounts and add new ids only")

    p = sub.add_parser("advice", help="Ask the coach for a short tip")
    p.add_argument("account")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_settings(args.config)

    store = AccountStore(args.store or cfg.storage.path, risk_cfg=cfg.risk.as_dict())
    try:
        store.load()
        return _COMMANDS[args.command](store, args, cfg)
    except StoreError as exc:
        logger.error("%s", exc.detail)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    raise SystemExit(main())
