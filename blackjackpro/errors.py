"""Exceptions raised by the blackjack engine."""


class BlackjackError(Exception):
    """Base class for all engine errors."""


class InvalidPhaseError(BlackjackError):
    """A command or transition is not legal in the current phase."""

    def __init__(self, message: str, phase: str | None = None) -> None:
        super().__init__(message)
        self.phase = phase


class InvalidSettingError(BlackjackError):
    """Unknown setting key or a value that fails validation."""

    def __init__(self, key: str, message: str | None = None) -> None:
        super().__init__(message or f"Unknown setting: {key}")
        self.key = key


class ActionUnavailableError(BlackjackError):
    """The action is not in the currently available actions."""

    def __init__(self, action: str, message: str | None = None) -> None:
        super().__init__(message or f"Action not available: {action}")
        self.action = action


class UndoUnavailableError(BlackjackError):
    """Nothing to undo, or undo is not allowed right now."""


class ShoeExhaustedError(BlackjackError, IndexError):
    """The shoe is empty even after a forced reshuffle."""
