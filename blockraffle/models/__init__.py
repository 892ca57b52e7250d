from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .bet import Bet  # noqa: F401
from .winner import Winner  # noqa: F401
from .lottery import LotteryHeight  # noqa: F401
from .notification import Notification  # noqa: F401

__all__ = [
    "Base",
    "Bet",
    "Winner",
    "LotteryHeight",
    "Notification",
]
