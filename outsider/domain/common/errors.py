from __future__ import annotations


class GameError(Exception):
    """Base for command rejections. ``code`` is what clients see in OutError."""

    code = "GAME_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class RoomNotFound(GameError):
    code = "ROOM_NOT_FOUND"


class Unauthorized(GameError):
    code = "NOT_HOST"


class InvalidPhase(GameError):
    code = "BAD_PHASE"


class InvalidPlayer(GameError):
    code = "INVALID_PLAYER"


class InsufficientPlayers(GameError):
    code = "NOT_ENOUGH_PLAYERS"
