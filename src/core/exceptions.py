"""Custom exceptions. Everything raised on purpose by this package derives from GameError."""


class GameError(Exception):
    """Top-level exception for the game."""


class InvalidMoveError(GameError):
    """A piece was dropped into a column that cannot take it."""


class GameStateError(GameError):
    """Operation does not fit the current state of the game (or of the voting window)."""


class InvalidRequestError(GameError):
    """Incoming request failed validation."""


class RepositoryError(GameError):
    """Record could not be found / stored."""


class RoomServiceError(GameError):
    """Room orchestration refused a request. Carries a machine readable code for the transport layer."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
