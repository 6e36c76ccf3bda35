"""
Error taxonomy shared by every layer.

Messages are meant to be shown to the user as-is (the service never rewrites a plugin's rejection text).
"""


class GameHubError(Exception):
    """Base class for all errors the service layer reports to its callers."""


class ValidationError(GameHubError):
    """Malformed move, command parse failure, or an invariant violated while constructing an entity."""


class InvalidFENError(ValidationError):
    """String cannot be interpreted as FEN."""


class InvalidRequestError(ValidationError):
    """Request model received data it cannot accept."""


class StateError(GameHubError):
    """Operation not allowed in the current state: wrong turn, inactive game, full or duplicate seat."""


class ConcurrencyError(StateError):
    """The game changed between reading it and writing the update back."""


class NotFoundError(GameHubError):
    """Unknown game, user, or game type."""


class PersistenceError(GameHubError):
    """The repository failed to read or write."""


class ScoreEventError(RuntimeError):
    """Unknown score event kind. Signals a bug in a plugin, not a user mistake."""
