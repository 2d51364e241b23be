"""Error taxonomy shared by the engine and hub layers.

All of these are contained at the smallest reasonable scope (one building,
one evaluator run) and never stop a recurring task.
"""


class EcoPulseError(Exception):
    """Base class for ecopulse errors."""


class InsufficientDataError(EcoPulseError):
    """A building has too little history to build features."""

    def __init__(self, building_id: str, available: int, required: int):
        self.building_id = building_id
        self.available = available
        self.required = required
        super().__init__(f"{building_id}: insufficient data ({available}, need {required})")


class StoreUnavailableError(EcoPulseError):
    """The reading store failed or timed out."""


class ModelUnavailableError(EcoPulseError):
    """A trained model artifact is missing or cannot be loaded."""


class NotificationError(EcoPulseError):
    """An alert could not be delivered."""
