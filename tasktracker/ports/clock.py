from typing import Protocol
from datetime import datetime

class Clock(Protocol):
    """Time source abstraction. Returns an aware UTC datetime."""
    def now(self) -> datetime:
        pass
