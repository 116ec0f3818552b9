"""Proof gate: checks a submitted journal before it may touch game state.

Two modes, chosen by the proof blob:

- development (empty proof): the journal hash is recomputed and compared.
  This gives integrity only. Anyone who can build a journal can also hash it,
  so a development reveal proves nothing about the hidden layout.
- production (non-empty proof): the succinct proof is checked by an external
  verifier against the circuit id, with the journal digest as public input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx

from hazardgrid.backend.commitment import parse_hazard_type, sha256_digest
from hazardgrid.backend.errors import (
    CommitmentMismatch,
    InvalidCoordinates,
    NotInitialized,
    ProofVerificationFailed,
)
from hazardgrid.backend.journal import JournalFormatError, decode_journal, extract_commitment
from hazardgrid.backend.logger import get_logger
from hazardgrid.backend.models import CellRevealResult, ProofMode

log = get_logger(__name__)


class ProofVerifier(Protocol):
    def verify(self, proof: bytes, circuit_id: bytes, public_inputs: bytes) -> bool:
        """Return True only for a proof that is valid for the circuit and inputs."""


class RemoteProofVerifier:
    """Delegates succinct-proof checks to an HTTP verification service."""

    def __init__(self, base_url: str, timeout_s: float = 10.0, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = client

    def verify(self, proof: bytes, circuit_id: bytes, public_inputs: bytes) -> bool:
        payload = {
            "proof": proof.hex(),
            "circuit_id": circuit_id.hex(),
            "public_inputs": public_inputs.hex(),
        }
        client = self._client or httpx.Client(timeout=self.timeout_s)
        try:
            response = client.post(f"{self.base_url}/verify", json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("proof verifier at %s unavailable: %s", self.base_url, exc)
            return False
        finally:
            if self._client is None:
                client.close()
        return body.get("valid") is True


@dataclass(frozen=True)
class ProofGate:
    verifier: ProofVerifier | None
    circuit_id: bytes

    def verify(
        self,
        commitment: bytes,
        journal_bytes: bytes,
        journal_hash: bytes,
        proof: bytes,
        position: tuple[int, int],
    ) -> CellRevealResult:
        """Check a reveal against the stored commitment and the Traverser's position.

        Returns a result with damage_dealt left at 0; damage is computed by the
        caller from the hazard type, never taken from the journal.
        """
        embedded = extract_commitment(journal_bytes)
        if embedded is None or embedded != commitment:
            raise CommitmentMismatch("journal commitment does not match the stored commitment")

        digest = sha256_digest(journal_bytes)
        if digest != journal_hash:
            raise ProofVerificationFailed("journal hash mismatch")

        if proof:
            mode = ProofMode.PRODUCTION
            if self.verifier is None:
                raise NotInitialized("no succinct-proof verifier is configured")
            if not self.verifier.verify(proof, self.circuit_id, digest):
                raise ProofVerificationFailed("succinct proof rejected")
        else:
            mode = ProofMode.DEVELOPMENT

        try:
            journal = decode_journal(journal_bytes)
        except JournalFormatError as exc:
            raise ProofVerificationFailed(str(exc)) from exc

        if (journal.x, journal.y) != position:
            raise InvalidCoordinates(f"journal reveals ({journal.x}, {journal.y}), Traverser is at {position}")

        if journal.has_hazard:
            hazard = parse_hazard_type(journal.hazard_type)
            if hazard is None or not hazard.is_hazard:
                raise ProofVerificationFailed(f"unknown hazard type {journal.hazard_type}")

        return CellRevealResult(
            x=journal.x,
            y=journal.y,
            has_hazard=journal.has_hazard,
            hazard_type=journal.hazard_type if journal.has_hazard else 0,
            damage_dealt=0,
            proof_mode=mode,
        )
