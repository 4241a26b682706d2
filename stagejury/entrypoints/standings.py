"""Standings entrypoint.

Loads a contest snapshot (JSON), recomputes reviews and standings,
verifies the result, archives it and prints a summary.
"""

import argparse
import asyncio
import json
import os
import sys

import bittensor as bt
from dotenv import load_dotenv
from pydantic import ValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="stagejury standings export")
    bt.logging.add_args(parser)
    parser.add_argument("--snapshot", type=str, required=False, help="Contest snapshot JSON")
    parser.add_argument("--data_dir", type=str, required=False)
    parser.add_argument("--retention_days", type=int, required=False)
    parser.add_argument("--config", type=str, required=False, help="Contest params YAML")
    return parser


def main(argv: list[str] | None = None) -> int:
    # Load .env if not in test mode
    if os.environ.get("STAGEJURY_TEST_MODE") != "true":
        load_dotenv()

    args = _build_parser().parse_args(argv)

    from stagejury.config.contest_params import load_contest_params
    from stagejury.standings.archive import StandingsArchive
    from stagejury.standings.exporter import build_standings
    from stagejury.standings.models import ContestSnapshot
    from stagejury.standings.verifier import verify_standings

    params = load_contest_params(path=args.config)

    # Env takes precedence over CLI
    snapshot_path = os.environ.get("STAGEJURY_STANDINGS__SNAPSHOT", args.snapshot or "")
    data_dir = os.environ.get(
        "STAGEJURY_STANDINGS__DATA_DIR", args.data_dir or params.standings.data_dir,
    )
    retention_days = int(os.environ.get(
        "STAGEJURY_STANDINGS__RETENTION_DAYS",
        args.retention_days or params.standings.retention_days,
    ))

    if not snapshot_path:
        bt.logging.error("--snapshot (or STAGEJURY_STANDINGS__SNAPSHOT) is required")
        return 1

    try:
        with open(snapshot_path) as f:
            contest = ContestSnapshot(**json.load(f))
    except (OSError, ValueError) as e:
        # ValidationError is a ValueError
        kind = "invalid" if isinstance(e, ValidationError) else "unreadable"
        bt.logging.error({"standings": {kind: snapshot_path, "error": str(e)}})
        return 1

    result = build_standings(contest, params)
    check = verify_standings(result)
    if not check:
        bt.logging.error({"standings": {"verification_failed": check.errors}})
        return 1

    archive = StandingsArchive(data_dir=data_dir, retention_days=retention_days)
    snapshot_id = asyncio.run(archive.put(result))

    print(json.dumps({
        "snapshot_id": snapshot_id,
        "counts": result.manifest.counts,
        "standings": [
            {"submission_id": s.submission_id, "label": s.label, "rank": s.rank}
            for s in result.standings
        ],
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
