# ultrabms/core/clock.py
from datetime import datetime, timezone
from typing import Callable

# Datas são persistidas como UTC "naive", como no restante do banco.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def from_timestamp(ts: int | float) -> datetime:
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).replace(tzinfo=None)
