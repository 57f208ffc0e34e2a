from __future__ import annotations

__all__ = [
    "AlignmentError",
    "AlignmentWarning",
    "ConfigError",
    "InvalidInput",
    "ResultCapExceeded",
    "TickCapExceeded",
    "ZeroDelta",
]


class AlignmentError(ValueError):
    pass


class InvalidInput(AlignmentError):
    """A parameter did not parse or is out of range; callers re-prompt."""


class ConfigError(InvalidInput):
    pass


class ZeroDelta(AlignmentError):
    """`speed / tps` rounds to zero, so the object never moves."""


class AlignmentWarning(UserWarning):
    """Non-fatal search conditions; results are valid but incomplete."""


class TickCapExceeded(AlignmentWarning):
    pass


class ResultCapExceeded(AlignmentWarning):
    pass
