"""Vote entrypoint: records one moderation vote and prints the new counts."""

import argparse
import asyncio
import json
import os
import sys

import bittensor as bt
from dotenv import load_dotenv


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="stagejury moderation vote")
    bt.logging.add_args(parser)
    parser.add_argument("kind", choices=["approve", "disapprove", "view"])
    parser.add_argument("submission_id")
    parser.add_argument("voter_id")
    parser.add_argument("--backend", type=str, choices=["memory", "filesystem", "sql"], required=False)
    parser.add_argument("--data_dir", type=str, required=False)
    parser.add_argument("--database_url", type=str, required=False)
    parser.add_argument("--config", type=str, required=False, help="Contest params YAML")
    return parser


async def _record(ledger_params, kind: str, submission_id: str, voter_id: str):
    from stagejury.ledger.recorder import VoteRecorder
    from stagejury.ledger.store import open_store

    store = await open_store(ledger_params)
    try:
        recorder = VoteRecorder.from_params(store, ledger_params)
        return await recorder.record(submission_id, voter_id, kind)
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            await close()


def main(argv: list[str] | None = None) -> int:
    if os.environ.get("STAGEJURY_TEST_MODE") != "true":
        load_dotenv()

    args = _build_parser().parse_args(argv)

    from stagejury.config.contest_params import load_contest_params
    from stagejury.ledger.errors import LedgerError

    params = load_contest_params(path=args.config)

    # Env takes precedence over CLI
    overrides = {
        "backend": os.environ.get("STAGEJURY_LEDGER__BACKEND", args.backend),
        "data_dir": os.environ.get("STAGEJURY_LEDGER__DATA_DIR", args.data_dir),
        "database_url": os.environ.get("STAGEJURY_LEDGER__DATABASE_URL", args.database_url),
    }
    ledger_params = params.ledger.model_copy(
        update={k: v for k, v in overrides.items() if v}
    )

    try:
        counts = asyncio.run(_record(ledger_params, args.kind, args.submission_id, args.voter_id))
    except ValueError as e:
        bt.logging.error({"vote": {"invalid": str(e)}})
        return 1
    except LedgerError as e:
        bt.logging.error({"vote": {"failed": str(e)}})
        return 2

    print(json.dumps({"submission_id": args.submission_id, **counts.model_dump()}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
