from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from blockraffle.config import Settings
from blockraffle.db.engine import make_engine
from blockraffle.models import LotteryHeight


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_tables(database_url: str) -> None:
    """Inspect the configured database and print the lottery tables."""
    engine = make_engine(database_url)
    insp = inspect(engine)
    tables = set(insp.get_table_names())
    print("Current tables:", ", ".join(sorted(tables)))
    if LotteryHeight.__tablename__ not in tables:
        print("Warning: lottery schema is missing, check DB_URL")
    engine.dispose()


def main() -> None:
    """Apply migrations (default to head) and report the resulting schema."""
    settings = Settings.from_env()
    upgrade_db()
    print_tables(settings.db_url)


if __name__ == "__main__":
    main()
