import pytest

from hazardgrid.backend.commitment import HazardLayout, HazardType, compute_commitment
from hazardgrid.backend.errors import InvalidCoordinates, InvalidLayout
from hazardgrid.backend.journal import decode_journal
from hazardgrid.backend.prover import DEV_CIRCUIT_ID, build_dev_reveal

KEY = bytes([7]) * 32


def test_dev_reveal_of_hazard_cell(layout: HazardLayout) -> None:
    bundle = build_dev_reveal(layout, 3, 2, session_id=42, committer_key=KEY)

    journal = decode_journal(bundle.journal_bytes)
    assert journal == bundle.journal
    assert journal.commitment == compute_commitment(layout)
    assert (journal.x, journal.y) == (3, 2)
    assert journal.has_hazard is True
    assert journal.hazard_type == HazardType.CRUSHING
    assert journal.damage == 1
    assert journal.session_id == 42
    assert journal.committer_key == KEY
    assert bundle.proof == b""
    assert bundle.is_dev_mode is True
    assert bundle.circuit_id == DEV_CIRCUIT_ID


def test_dev_reveal_of_empty_cell(layout: HazardLayout) -> None:
    bundle = build_dev_reveal(layout, 0, 0, session_id=42, committer_key=KEY)

    assert bundle.journal.has_hazard is False
    assert bundle.journal.hazard_type == 0
    assert bundle.journal.damage == 0


def test_dev_reveal_dict_form(layout: HazardLayout) -> None:
    payload = build_dev_reveal(layout, 1, 1, session_id=42, committer_key=KEY).to_dict()

    assert payload["dev_mode"] is True
    assert payload["proof"] == ""
    assert len(bytes.fromhex(payload["journal_bytes"])) == 73
    assert payload["output"]["hazard_type"] == 1


@pytest.mark.parametrize("x, y", [(5, 0), (0, 5), (-1, 2)])
def test_dev_reveal_rejects_out_of_bounds_cell(layout: HazardLayout, x: int, y: int) -> None:
    with pytest.raises(InvalidCoordinates):
        build_dev_reveal(layout, x, y, session_id=42, committer_key=KEY)


def test_dev_reveal_rejects_invalid_layout(make_layout) -> None:
    layout = make_layout({(0, 4): HazardType.PIERCING})

    with pytest.raises(InvalidLayout):
        build_dev_reveal(layout, 0, 1, session_id=42, committer_key=KEY)


def test_dev_reveal_rejects_short_committer_key(layout: HazardLayout) -> None:
    with pytest.raises(ValueError):
        build_dev_reveal(layout, 0, 1, session_id=42, committer_key=bytes(16))


@pytest.mark.parametrize(
    "x, y, expected",
    [(1, 1, 1), (2, 3, 2), (3, 1, 1), (0, 0, 0)],
)
def test_dev_journal_damage_byte_matches_reveal_circuit(layout: HazardLayout, x: int, y: int, expected: int) -> None:
    bundle = build_dev_reveal(layout, x, y, session_id=42, committer_key=KEY)

    assert bundle.journal_bytes[36] == expected
