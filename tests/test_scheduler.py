import unittest

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from blockraffle.models import Base, LotteryHeight
from blockraffle.scheduler import HeightScheduler


class HeightSchedulerTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )
        self.scheduler = HeightScheduler(self.Session, duration=50)

    def tearDown(self):
        self.engine.dispose()

    def _store(self, height: int) -> None:
        with self.Session.begin() as session:
            LotteryHeight.add_height(session, height)

    def _heights(self) -> list[int]:
        with self.Session() as session:
            return LotteryHeight.list_heights(session)

    def test_unset_target_is_scheduled_one_duration_ahead(self):
        self.assertEqual(self.scheduler.reconcile(1000), 1050)
        self.assertEqual(self.scheduler.target, 1050)
        self.assertEqual(self._heights(), [1050])

    def test_target_at_current_height_is_kept(self):
        self._store(100)
        self.assertEqual(self.scheduler.reconcile(100), 100)
        self.assertEqual(self._heights(), [100])

    def test_future_target_is_kept(self):
        self._store(100)
        self.assertEqual(self.scheduler.reconcile(60), 100)
        self.assertEqual(self._heights(), [100])

    def test_missed_target_is_replaced_without_a_draw(self):
        self._store(50)
        self._store(100)
        with self.assertLogs("blockraffle.scheduler", level="WARNING"):
            self.assertEqual(self.scheduler.reconcile(151), 201)
        # Earlier, completed draws stay; only the missed one is removed.
        self.assertEqual(self._heights(), [50, 201])

    def test_advance_moves_and_persists_the_target(self):
        self.scheduler.reconcile(1000)
        self.assertEqual(self.scheduler.advance(), 1100)
        self.assertEqual(self.scheduler.advance(), 1150)
        self.assertEqual(self._heights(), [1050, 1100, 1150])

    def test_advance_survives_store_failures(self):
        self.scheduler.reconcile(1000)
        Base.metadata.drop_all(self.engine)
        with self.assertLogs("blockraffle.scheduler", level="ERROR"):
            self.assertEqual(self.scheduler.advance(), 1100)
        self.assertEqual(self.scheduler.target, 1100)

    def test_duration_must_be_positive(self):
        with self.assertRaises(ValueError):
            HeightScheduler(self.Session, duration=0)


if __name__ == "__main__":
    unittest.main()
