from datetime import datetime
from typing import Callable


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now()


def get_clock() -> Clock:
    """FastAPI dependency; tests override it with a fixed clock."""
    return system_clock
