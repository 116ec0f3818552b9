from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from hazardgrid.backend.api import create_app
from hazardgrid.backend.commitment import GRID_CELLS, HazardLayout, HazardType, cell_index, compute_commitment
from hazardgrid.backend.config import ConfigRegistry
from hazardgrid.backend.controller import GameController
from hazardgrid.backend.hub import InMemoryGameHub
from hazardgrid.backend.moon import MoonPhase, determine_moon_phase
from hazardgrid.backend.prover import build_dev_reveal
from hazardgrid.backend.security import ConsentAuthorizer
from hazardgrid.backend.store import InMemorySessionStore

KEY = bytes([9]) * 32


def balanced_session_id(start: int) -> int:
    session_id = start
    while determine_moon_phase(session_id) is not MoonPhase.BALANCED:
        session_id += 1
    return session_id


def layout_with(hazards: dict[tuple[int, int], HazardType]) -> HazardLayout:
    cells = bytearray(GRID_CELLS)
    for (x, y), hazard in hazards.items():
        cells[cell_index(x, y)] = int(hazard)
    return HazardLayout(cells=bytes(cells), salt=bytes(range(16)))


class FullGameTests(unittest.TestCase):
    def setUp(self):
        self.hub = InMemoryGameHub()
        registry = ConfigRegistry()
        registry.initialize(admin="admin", hub=self.hub, verifier=None, circuit_id=bytes(32))
        controller = GameController(
            store=InMemorySessionStore(server_salt="salt"),
            config=registry,
            authorizer=ConsentAuthorizer(()),
        )
        self.client = TestClient(create_app(controller=controller))
        self.layout = layout_with(
            {
                (0, 1): HazardType.CALMING,
                (1, 2): HazardType.CRUSHING,
                (0, 3): HazardType.PIERCING,
                (1, 3): HazardType.CRUSHING,
                (2, 1): HazardType.PIERCING,
            }
        )

    def start_committed(self, session_id: int) -> dict:
        created = self.client.post(
            "/api/sessions",
            json={
                "session_id": session_id,
                "concealer": "concealer-key",
                "traverser": "traverser-key",
                "concealer_stake": 25,
                "traverser_stake": 25,
            },
        ).json()
        committed = self.client.post(
            f"/api/sessions/{session_id}/commit",
            json={"token": created["concealer_token"], "commitment": compute_commitment(self.layout).hex()},
        )
        self.assertEqual(committed.status_code, 200)
        return created

    def play_turn(self, created: dict, x: int, y: int) -> dict:
        session_id = created["session_id"]
        moved = self.client.post(
            f"/api/sessions/{session_id}/move",
            json={"token": created["traverser_token"], "x": x, "y": y},
        )
        self.assertEqual(moved.status_code, 200)
        bundle = build_dev_reveal(self.layout, x, y, session_id=session_id, committer_key=KEY)
        revealed = self.client.post(
            f"/api/sessions/{session_id}/reveal",
            json={
                "token": created["concealer_token"],
                "journal": bundle.journal_bytes.hex(),
                "journal_hash": bundle.journal_hash.hex(),
            },
        )
        self.assertEqual(revealed.status_code, 200)
        return revealed.json()

    def test_traverser_crosses_the_grid(self):
        session_id = balanced_session_id(1000)
        created = self.start_committed(session_id)

        turns = [self.play_turn(created, x, y) for x, y in [(0, 1), (0, 2), (0, 3), (0, 4)]]

        self.assertEqual([turn["result"]["damage_dealt"] for turn in turns], [1, 0, 1, 0])
        session = turns[-1]["session"]
        self.assertEqual(session["phase"], "finished")
        self.assertEqual(session["winner"], "TRAVERSER")
        self.assertEqual(session["health"], 4)
        self.assertEqual(session["turn"], 4)
        self.assertEqual(session["revealed_cells"], [5, 10, 15, 20])
        self.assertFalse(self.hub.games[session_id].player1_won)

        listed = self.client.get(f"/api/sessions/{session_id}").json()
        self.assertEqual(listed["legal_moves"], [])
        kinds = [entry["kind"] for entry in listed["session"]["log"]]
        self.assertEqual(kinds[0], "committed")
        self.assertEqual(kinds[-1], "game_over")

    def test_traverser_dies_on_crushing_cells(self):
        session_id = balanced_session_id(2000)
        created = self.start_committed(session_id)

        first = self.play_turn(created, 2, 1)
        second = self.play_turn(created, 1, 2)
        third = self.play_turn(created, 1, 3)

        self.assertEqual(first["session"]["health"], 4)
        self.assertEqual(second["session"]["health"], 1)
        self.assertEqual(third["session"]["health"], 0)
        self.assertEqual(third["session"]["winner"], "CONCEALER")
        self.assertTrue(self.hub.games[session_id].player1_won)

        late_move = self.client.post(
            f"/api/sessions/{session_id}/move",
            json={"token": created["traverser_token"], "x": 1, "y": 4},
        )
        self.assertEqual(late_move.status_code, 409)
        self.assertEqual(late_move.json()["error"], "INVALID_PHASE")

        reused = self.client.post(
            "/api/sessions",
            json={
                "session_id": session_id,
                "concealer": "someone",
                "traverser": "else",
                "concealer_stake": 1,
                "traverser_stake": 1,
            },
        )
        self.assertEqual(reused.status_code, 409)
        self.assertEqual(reused.json()["error"], "ALREADY_INITIALIZED")


if __name__ == "__main__":
    unittest.main()
