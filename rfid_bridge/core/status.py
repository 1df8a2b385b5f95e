# rfid_bridge/core/status.py

from enum import Enum, auto

class SessionState(Enum):
    """Represents the lifecycle state of a reader session."""
    UNINITIALIZED = auto()
    READY = auto()
    READING = auto() # Continuous inventory running
    RELEASED = auto()

    def __str__(self):
        return self.name


class BroadcasterState(Enum):
    """Represents whether the status broadcaster has a live timer."""
    IDLE = auto()
    ACTIVE = auto()

    def __str__(self):
        return self.name
