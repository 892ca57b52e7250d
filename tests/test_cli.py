import argparse
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blockraffle.blockchain.events import BlockEvent
from blockraffle.cli import build_parser, cmd_run
from blockraffle.config import Settings
from blockraffle.models import Base, Bet, LotteryHeight


class DummyChainClient:
    def __init__(self, height=100, events=()):
        self.height = height
        self.events = list(events)

    def get_current_height(self):
        return self.height

    def remote_balance(self):
        return 0

    def subscribe_blocks(self):
        return iter(self.events)


def lnd_hash() -> bytes:
    # Canonical hash ends with (5, 3); LND sends it reversed.
    canonical = bytearray(32)
    canonical[31] = 5
    canonical[30] = 3
    return bytes(reversed(canonical))


class CmdRunTests(unittest.TestCase):
    def setUp(self):
        # The watcher thread must see the same in-memory database.
        self.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.args = argparse.Namespace(verbose=False, db_url=None, duration=None)
        self.settings = Settings(duration=10, payout_timeout=0.01)

    def tearDown(self):
        self.engine.dispose()

    def _run(self, client):
        with patch("blockraffle.cli._settings", return_value=self.settings), patch(
            "blockraffle.cli.make_engine", return_value=self.engine
        ), patch("blockraffle.cli._client", return_value=client):
            return cmd_run(self.args)

    def test_ended_block_stream_stops_the_command(self):
        with self.assertLogs("blockraffle", level="ERROR") as logs:
            self.assertEqual(self._run(DummyChainClient(events=())), 1)
        self.assertIn("Block stream ended", "\n".join(logs.output))

    def test_pending_payouts_are_logged_before_exiting(self):
        with self.Session.begin() as session:
            Bet.place(session, "A", 50)
            Bet.place(session, "B", 100)
            Bet.place(session, "C", 850)
        client = DummyChainClient(height=100, events=[BlockEvent(110, lnd_hash())])

        with self.assertLogs("blockraffle", level="INFO") as logs:
            self.assertEqual(self._run(client), 1)

        output = "\n".join(logs.output)
        self.assertIn("Payout pending: B won 500 with ticket 126 at height 110", output)
        with self.Session() as session:
            self.assertEqual(LotteryHeight.list_heights(session), [110, 120])


class ParserTests(unittest.TestCase):
    def test_global_flags_and_subcommands(self):
        args = build_parser().parse_args(
            ["--duration", "6", "bet", "--public-key", "02ab", "--tickets", "25"]
        )
        self.assertEqual(args.duration, 6)
        self.assertEqual(args.public_key, "02ab")
        self.assertEqual(args.tickets, 25)

    def test_subcommand_is_required(self):
        with patch("sys.stderr"):
            with self.assertRaises(SystemExit):
                build_parser().parse_args([])


if __name__ == "__main__":
    unittest.main()
