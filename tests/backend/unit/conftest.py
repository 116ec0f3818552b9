from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pytest

from hazardgrid.backend.commitment import GRID_CELLS, HazardLayout, HazardType, cell_index, compute_commitment
from hazardgrid.backend.config import ConfigRegistry
from hazardgrid.backend.controller import GameController
from hazardgrid.backend.hub import InMemoryGameHub
from hazardgrid.backend.models import CellRevealResult, GameSession
from hazardgrid.backend.moon import MoonPhase, determine_moon_phase
from hazardgrid.backend.prover import ProofBundle, build_dev_reveal
from hazardgrid.backend.security import ConsentAuthorizer
from hazardgrid.backend.store import InMemorySessionStore

CONCEALER = "alice"
TRAVERSER = "bob"
COMMITTER_KEY = bytes(range(32))
SALT = bytes(range(100, 116))

# Calming at (1,1); two crushing cells in column 3 kill a Traverser on a balanced moon.
DEFAULT_HAZARDS = {
    (1, 1): HazardType.CALMING,
    (3, 1): HazardType.CRUSHING,
    (3, 2): HazardType.CRUSHING,
    (2, 3): HazardType.PIERCING,
    (4, 3): HazardType.CRUSHING,
}


def _make_layout(hazards: dict[tuple[int, int], HazardType], salt: bytes = SALT) -> HazardLayout:
    cells = bytearray(GRID_CELLS)
    for (x, y), hazard in hazards.items():
        cells[cell_index(x, y)] = int(hazard)
    return HazardLayout(cells=bytes(cells), salt=salt)


def _session_id_with(moon: MoonPhase, start: int = 1) -> int:
    for session_id in range(start, start + 10_000):
        if determine_moon_phase(session_id) is moon:
            return session_id
    raise AssertionError(f"no session id with moon {moon.name} near {start}")


@dataclass
class GameDriver:
    controller: GameController
    layout: HazardLayout

    def start(self, session_id: int) -> GameSession:
        return self.controller.start(session_id, CONCEALER, TRAVERSER, 100, 50)

    def start_committed(self, session_id: int) -> GameSession:
        self.start(session_id)
        return self.controller.acting_as(CONCEALER).commit(session_id, compute_commitment(self.layout))

    def bundle(self, session_id: int, x: int, y: int) -> ProofBundle:
        return build_dev_reveal(self.layout, x, y, session_id, COMMITTER_KEY)

    def move(self, session_id: int, x: int, y: int) -> GameSession:
        return self.controller.acting_as(TRAVERSER).move(session_id, x, y)

    def reveal(self, session_id: int, bundle: ProofBundle, proof: bytes = b"") -> CellRevealResult:
        return self.controller.acting_as(CONCEALER).reveal(
            session_id,
            journal_bytes=bundle.journal_bytes,
            journal_hash=bundle.journal_hash,
            proof=proof,
        )

    def step(self, session_id: int, x: int, y: int) -> CellRevealResult:
        self.move(session_id, x, y)
        return self.reveal(session_id, self.bundle(session_id, x, y))


@pytest.fixture
def make_layout() -> Callable[..., HazardLayout]:
    return _make_layout


@pytest.fixture
def session_id_with() -> Callable[..., int]:
    return _session_id_with


@pytest.fixture
def layout() -> HazardLayout:
    return _make_layout(DEFAULT_HAZARDS)


@pytest.fixture
def hub() -> InMemoryGameHub:
    return InMemoryGameHub()


@pytest.fixture
def registry(hub: InMemoryGameHub) -> ConfigRegistry:
    registry = ConfigRegistry()
    registry.initialize(admin="admin", hub=hub, verifier=None, circuit_id=bytes(32))
    return registry


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore(server_salt="test-salt")


@pytest.fixture
def controller(store: InMemorySessionStore, registry: ConfigRegistry) -> GameController:
    return GameController(store=store, config=registry, authorizer=ConsentAuthorizer({CONCEALER, TRAVERSER}))


@pytest.fixture
def game(controller: GameController, layout: HazardLayout) -> GameDriver:
    return GameDriver(controller=controller, layout=layout)
