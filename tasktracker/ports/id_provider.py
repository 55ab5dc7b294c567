from typing import Protocol

class IdProvider(Protocol):
    """Port responsible for generating unique task identifiers."""
    def new_id(self) -> str:
        pass
