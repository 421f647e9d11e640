"""Custom exceptions for the focus engine."""


class FocusError(Exception):
    """Base exception for all focus engine errors."""


class ConfigError(FocusError, ValueError):
    """Raised when a Pomodoro configuration cannot be planned."""


class EmptyPlanError(FocusError):
    """Raised when the configured jornada is too short for a single focus session."""


class InvalidTransitionError(FocusError):
    """Raised when an action is not allowed in the current phase."""


class StateError(FocusError):
    """Raised when a persisted engine snapshot cannot be decoded."""


class PersistenceError(FocusError):
    """Raised when a store cannot write its value."""
