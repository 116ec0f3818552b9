"""Command line helpers: run the API, commit to a layout, build dev-mode reveals."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from hazardgrid.backend.commitment import HazardLayout, compute_commitment
from hazardgrid.backend.config import load_settings
from hazardgrid.backend.errors import GameError
from hazardgrid.backend.logger import configure_logging
from hazardgrid.backend.migrate import apply_schema
from hazardgrid.backend.prover import build_dev_reveal


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="hazardgrid", description="Hazard grid commit-reveal game")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    commit = subparsers.add_parser("commit", help="print the commitment of a layout file")
    commit.add_argument("--layout-file", required=True)

    prove = subparsers.add_parser("prove", help="build a development-mode reveal")
    prove.add_argument("--layout-file", required=True)
    prove.add_argument("-x", "--cell-x", type=int, required=True)
    prove.add_argument("-y", "--cell-y", type=int, required=True)
    prove.add_argument("--session-id", type=int, required=True)
    prove.add_argument("--committer-key", required=True, help="32-byte public key as hex")
    prove.add_argument("--output", choices=["hex", "json"], default="hex")

    subparsers.add_parser("migrate", help="create the PostgreSQL tables")
    subparsers.add_parser("circuit-id", help="print the configured circuit id")
    return parser.parse_args(argv)


def load_layout(path: str) -> HazardLayout:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    layout = HazardLayout.from_dict(payload)
    layout.validate()
    return layout


def run_serve(host: str | None, port: int | None) -> int:
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level, json_lines=settings.log_json, logfile=settings.log_file)
    uvicorn.run(
        "hazardgrid.backend.api:app",
        host=host or settings.host,
        port=port or settings.port,
    )
    return 0


def run_commit(layout_file: str) -> int:
    layout = load_layout(layout_file)
    print(f"hazards: {layout.hazard_count()}")
    print(f"commitment: {compute_commitment(layout).hex()}")
    return 0


def run_prove(args: argparse.Namespace) -> int:
    layout = load_layout(args.layout_file)
    bundle = build_dev_reveal(
        layout,
        x=args.cell_x,
        y=args.cell_y,
        session_id=args.session_id,
        committer_key=bytes.fromhex(args.committer_key),
    )
    if args.output == "json":
        print(json.dumps(bundle.to_dict(), indent=2))
        return 0

    print("WARNING: development mode reveal, the proof is empty and is only hash-checked.", file=sys.stderr)
    print(f"journal_bytes: {bundle.journal_bytes.hex()}")
    print(f"journal_hash: {bundle.journal_hash.hex()}")
    print("proof: (empty - development mode)")
    print(f"cell: ({bundle.journal.x}, {bundle.journal.y}) hazard_type={bundle.journal.hazard_type}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        if args.command == "serve":
            return run_serve(args.host, args.port)
        if args.command == "commit":
            return run_commit(args.layout_file)
        if args.command == "prove":
            return run_prove(args)
        if args.command == "migrate":
            apply_schema(load_settings().database_url)
            return 0
        print(load_settings().circuit_id.hex())
        return 0
    except (GameError, ValueError, OSError, RuntimeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
