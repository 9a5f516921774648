"""Exception types raised by gitproof"""


class InvalidProfileError(ValueError):
    """Raised when a payload has no login or no usable account creation date"""


class EnrichmentUnavailable(Exception):
    """Raised by a summarizer when generated text cannot be produced"""


class PersistenceError(Exception):
    """Raised when the leaderboard store cannot be read or written"""
