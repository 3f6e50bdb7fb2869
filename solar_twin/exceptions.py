"""
Errors raised by the layout and sun-position engines.

Both engines fail fast and synchronously: nothing partial is returned.
"""


class TwinError(Exception):
    """Base exception for the solar twin core."""

    pass


class InvalidDimension(TwinError, ValueError):
    """A length, depth, height, distance or count is not strictly positive."""

    pass


class OutOfRangeFault(TwinError, IndexError):
    """The fault table has fewer entries than the layout would place."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Fault table has {available} entries but the layout places {required} panels"
        )
