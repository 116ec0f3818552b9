"""Backend package for the hazard grid commit-reveal game."""

from .commitment import HazardLayout, HazardType, compute_commitment
from .config import BackendSettings, ConfigRegistry, GameConfig, load_settings
from .controller import GameController
from .errors import ErrorCode, GameError
from .hub import GameHub, InMemoryGameHub, PostgresGameHub, create_hub
from .journal import JOURNAL_LEN, Journal, decode_journal, encode_journal
from .models import CellRevealResult, GameSession, Phase, ProofMode, Role
from .moon import MoonPhase, determine_moon_phase
from .proof import ProofGate, ProofVerifier, RemoteProofVerifier
from .security import CallerAuthorizer, ConsentAuthorizer, generate_token, hash_token, verify_token
from .store import InMemorySessionStore, PostgresSessionStore, SessionStore, create_store

__all__ = [
    "BackendSettings",
    "CallerAuthorizer",
    "CellRevealResult",
    "compute_commitment",
    "ConfigRegistry",
    "ConsentAuthorizer",
    "create_hub",
    "create_store",
    "decode_journal",
    "determine_moon_phase",
    "encode_journal",
    "ErrorCode",
    "GameConfig",
    "GameController",
    "GameError",
    "GameHub",
    "GameSession",
    "generate_token",
    "hash_token",
    "HazardLayout",
    "HazardType",
    "InMemoryGameHub",
    "InMemorySessionStore",
    "Journal",
    "JOURNAL_LEN",
    "load_settings",
    "MoonPhase",
    "Phase",
    "PostgresGameHub",
    "PostgresSessionStore",
    "ProofGate",
    "ProofMode",
    "ProofVerifier",
    "RemoteProofVerifier",
    "Role",
    "SessionStore",
    "verify_token",
]
