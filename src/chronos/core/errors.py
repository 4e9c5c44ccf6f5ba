"""Exceptions raised by the timeline core.

All core exceptions inherit from ChronosError so callers (the CLI, a host
application) can catch them at one place and surface a validation message.
"""


class ChronosError(Exception):
    """Base exception for timeline errors."""

    pass


class DuplicateNameError(ChronosError):
    """Raised when a category name collides with an existing category.

    Names are compared case-sensitively across built-in and custom sets.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"An event type named '{name}' already exists")


class CategoryNotFoundError(ChronosError):
    """Raised when an operation targets a missing or built-in category."""

    def __init__(self, name: str, reason: str = "not found") -> None:
        self.name = name
        super().__init__(f"Event type '{name}' {reason}")


class EventValidationError(ChronosError):
    """Raised when event input is incomplete (no date, no description, ...)."""

    pass
