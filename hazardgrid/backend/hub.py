"""Points-custody hub: locks both stakes on start and settles them on game end."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from hazardgrid.backend.errors import HubError
from hazardgrid.backend.logger import get_logger

log = get_logger(__name__)


class GameHub(Protocol):
    def start_game(
        self,
        game_id: str,
        session_id: int,
        player1: str,
        player2: str,
        player1_points: int,
        player2_points: int,
    ) -> None:
        """Lock both players' points for a new session."""

    def end_game(self, session_id: int, player1_won: bool) -> None:
        """Settle a session; player1 is the Concealer. Repeating the same result is a no-op."""

    def release_game(self, session_id: int) -> None:
        """Forget a session whose record expired; unsettled stakes go back to both players."""


@dataclass
class HubGame:
    game_id: str
    player1: str
    player2: str
    player1_points: int
    player2_points: int
    player1_won: bool | None = None

    @property
    def settled(self) -> bool:
        return self.player1_won is not None

    @property
    def winner(self) -> str | None:
        if self.player1_won is None:
            return None
        return self.player1 if self.player1_won else self.player2


class InMemoryGameHub:
    def __init__(self) -> None:
        self.games: dict[int, HubGame] = {}

    def start_game(
        self,
        game_id: str,
        session_id: int,
        player1: str,
        player2: str,
        player1_points: int,
        player2_points: int,
    ) -> None:
        if session_id in self.games:
            raise HubError(f"session {session_id} already started")
        self.games[session_id] = HubGame(
            game_id=game_id,
            player1=player1,
            player2=player2,
            player1_points=player1_points,
            player2_points=player2_points,
        )
        log.info("hub locked %s + %s points for session %s", player1_points, player2_points, session_id)

    def end_game(self, session_id: int, player1_won: bool) -> None:
        game = self.games.get(session_id)
        if game is None:
            raise HubError(f"session {session_id} was never started")
        if game.settled:
            if game.player1_won == player1_won:
                return
            raise HubError(f"session {session_id} already settled with the other result")
        game.player1_won = player1_won
        log.info("hub settled session %s, winner %s", session_id, game.winner)

    def release_game(self, session_id: int) -> None:
        game = self.games.pop(session_id, None)
        if game is not None and not game.settled:
            log.warning("hub released unsettled stakes of expired session %s", session_id)


@dataclass
class PostgresGameHub:
    """Hub ledger kept next to the session tables so settlements survive restarts."""

    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def start_game(
        self,
        game_id: str,
        session_id: int,
        player1: str,
        player2: str,
        player1_points: int,
        player2_points: int,
    ) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO hub_games
                        (session_id, game_id, player1, player2, player1_points, player2_points, started_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (session_id) DO NOTHING
                    RETURNING session_id
                    """,
                    (
                        session_id,
                        game_id,
                        player1,
                        player2,
                        player1_points,
                        player2_points,
                        datetime.now(timezone.utc),
                    ),
                )
                if cur.fetchone() is None:
                    raise HubError(f"session {session_id} already started")
            conn.commit()
        log.info("hub locked %s + %s points for session %s", player1_points, player2_points, session_id)

    def end_game(self, session_id: int, player1_won: bool) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE hub_games
                    SET player1_won = %s, settled_at = %s
                    WHERE session_id = %s AND player1_won IS NULL
                    RETURNING session_id
                    """,
                    (player1_won, datetime.now(timezone.utc), session_id),
                )
                if cur.fetchone() is None:
                    cur.execute("SELECT player1_won FROM hub_games WHERE session_id = %s", (session_id,))
                    row = cur.fetchone()
                    if row is None:
                        raise HubError(f"session {session_id} was never started")
                    if row[0] != player1_won:
                        raise HubError(f"session {session_id} already settled with the other result")
                    return
            conn.commit()
        log.info("hub settled session %s, concealer won: %s", session_id, player1_won)

    def release_game(self, session_id: int) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM hub_games WHERE session_id = %s", (session_id,))
            conn.commit()


def create_hub(database_url: str | None) -> GameHub:
    if database_url:
        return PostgresGameHub(database_url=database_url)
    return InMemoryGameHub()
