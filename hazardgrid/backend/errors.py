"""Error taxonomy shared by the game engine, the proof gate and the HTTP layer."""

from __future__ import annotations

from enum import Enum, IntEnum


class ErrorCategory(str, Enum):
    SETUP = "setup"
    PHASE = "phase"
    MOVEMENT = "movement"
    PROOF = "proof"
    LOOKUP = "lookup"
    AUTHORIZATION = "authorization"
    HUB = "hub"


class ErrorCode(IntEnum):
    NOT_INITIALIZED = 1
    ALREADY_INITIALIZED = 2
    SELF_PLAY_NOT_ALLOWED = 3
    INVALID_SESSION_ID = 4
    INVALID_PHASE = 5
    INVALID_MOVE = 6
    COMMITMENT_MISMATCH = 7
    PROOF_VERIFICATION_FAILED = 8
    INVALID_COORDINATES = 9
    SESSION_NOT_FOUND = 10
    UNAUTHORIZED = 11
    INVALID_LAYOUT = 12
    HUB_FAILURE = 13


class GameError(Exception):
    """Base class for every failure a game operation can report."""

    code: ErrorCode
    category: ErrorCategory

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code.name)
        self.message = message or self.code.name

    def to_dict(self) -> dict[str, object]:
        return {
            "error": self.code.name,
            "code": int(self.code),
            "category": self.category.value,
            "detail": self.message,
        }


class NotInitialized(GameError):
    code = ErrorCode.NOT_INITIALIZED
    category = ErrorCategory.SETUP


class AlreadyInitialized(GameError):
    code = ErrorCode.ALREADY_INITIALIZED
    category = ErrorCategory.SETUP


class SelfPlayNotAllowed(GameError):
    code = ErrorCode.SELF_PLAY_NOT_ALLOWED
    category = ErrorCategory.SETUP


class InvalidSessionId(GameError):
    code = ErrorCode.INVALID_SESSION_ID
    category = ErrorCategory.SETUP


class InvalidLayout(GameError):
    code = ErrorCode.INVALID_LAYOUT
    category = ErrorCategory.SETUP


class InvalidPhase(GameError):
    code = ErrorCode.INVALID_PHASE
    category = ErrorCategory.PHASE


class InvalidMove(GameError):
    code = ErrorCode.INVALID_MOVE
    category = ErrorCategory.MOVEMENT


class CommitmentMismatch(GameError):
    code = ErrorCode.COMMITMENT_MISMATCH
    category = ErrorCategory.PROOF


class ProofVerificationFailed(GameError):
    code = ErrorCode.PROOF_VERIFICATION_FAILED
    category = ErrorCategory.PROOF


class InvalidCoordinates(GameError):
    code = ErrorCode.INVALID_COORDINATES
    category = ErrorCategory.PROOF


class SessionNotFound(GameError):
    code = ErrorCode.SESSION_NOT_FOUND
    category = ErrorCategory.LOOKUP


class Unauthorized(GameError):
    code = ErrorCode.UNAUTHORIZED
    category = ErrorCategory.AUTHORIZATION


class HubError(GameError):
    code = ErrorCode.HUB_FAILURE
    category = ErrorCategory.HUB
