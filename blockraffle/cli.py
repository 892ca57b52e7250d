from __future__ import annotations

import argparse
import json
import logging
import queue
from datetime import timedelta

from .blockchain.api import ChainClient
from .config import Settings
from .db.engine import get_sessionmaker, make_engine
from .errors import LotteryError
from .models import Bet, Notification
from .notifications import NullNotifier, TelegramNotifier
from .workflows import get_info, start_lottery

log = logging.getLogger("blockraffle")


def setup_logging(verbose: bool, level: str = "INFO") -> None:
    resolved = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)
    logging.basicConfig(level=resolved, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(db_url_override=args.db_url, duration_override=args.duration)


def _client(settings: Settings) -> ChainClient:
    return ChainClient(
        rest_host=settings.lnd_rest_host,
        macaroon_path=settings.lnd_macaroon_path,
        tls_cert_path=settings.lnd_tls_cert_path,
    )


def cmd_run(args: argparse.Namespace) -> int:
    settings = _settings(args)
    Session = get_sessionmaker(make_engine(settings.db_url))

    if settings.telegram_bot_token:
        notifier = TelegramNotifier(settings.telegram_bot_token)
    else:
        log.info("TELEGRAM_BOT_TOKEN not set, winner notifications are disabled")
        notifier = NullNotifier()

    payouts: queue.Queue = queue.Queue(maxsize=settings.payout_queue_size)
    lottery = start_lottery(
        Session,
        _client(settings),
        duration=settings.duration,
        notifier=notifier,
        payouts=payouts,
        payout_timeout=settings.payout_timeout,
    )

    # Payments are made by a separate service; here batches are only logged.
    try:
        while True:
            try:
                batch = payouts.get(timeout=1.0)
            except queue.Empty:
                if lottery.watcher.error is not None:
                    return 1
                if not lottery.watcher.is_alive():
                    log.error("Block stream ended, no further lotteries will be drawn")
                    return 1
                continue
            for winner in batch:
                log.info(
                    f"Payout pending: {winner.public_key} won {winner.prizes} "
                    f"with ticket {winner.ticket} at height {winner.lottery_height}"
                )
    except KeyboardInterrupt:
        log.info("Stopping block watcher")
        lottery.watcher.stop()
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    settings = _settings(args)
    Session = get_sessionmaker(make_engine(settings.db_url))
    with Session() as session:
        info = get_info(session, _client(settings))
    print(json.dumps(info.to_json(), indent=2))
    return 0


def cmd_bet(args: argparse.Namespace) -> int:
    settings = _settings(args)
    Session = get_sessionmaker(make_engine(settings.db_url))
    with Session.begin() as session:
        bet = Bet.place(session, args.public_key, args.tickets)
        print(f"Bet placed: tickets {bet.index - bet.tickets + 1}-{bet.index}")
    return 0


def cmd_subscribe(args: argparse.Namespace) -> int:
    settings = _settings(args)
    Session = get_sessionmaker(make_engine(settings.db_url))
    with Session.begin() as session:
        Notification.subscribe(
            session,
            args.public_key,
            args.chat_id,
            ttl=timedelta(days=settings.notification_ttl_days),
        )
    print(f"Notifications enabled for {args.public_key}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="blockraffle",
        description="Block-height scheduled lottery.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--db-url", default=None, help="Override DB_URL.")
    p.add_argument("--duration", type=int, default=None, help="Override LOTTERY_DURATION (blocks).")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("run", help="Watch blocks and run the lottery.")
    r.set_defaults(func=cmd_run)

    i = sub.add_parser("info", help="Print prize pool, capacity and next height.")
    i.set_defaults(func=cmd_info)

    b = sub.add_parser("bet", help="Place a bet in the running round.")
    b.add_argument("--public-key", required=True, help="Participant public key.")
    b.add_argument("--tickets", required=True, type=int, help="Wager size in sats.")
    b.set_defaults(func=cmd_bet)

    s = sub.add_parser("subscribe", help="Send results of a participant to a Telegram chat.")
    s.add_argument("--public-key", required=True, help="Participant public key.")
    s.add_argument("--chat-id", required=True, type=int, help="Telegram chat ID.")
    s.set_defaults(func=cmd_subscribe)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    try:
        setup_logging(args.verbose, _settings(args).log_level)
        code = args.func(args)
    except (LotteryError, ValueError) as e:
        log.error(str(e))
        code = 2
    raise SystemExit(code)
