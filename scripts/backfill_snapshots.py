"""
Fill missing tenant and invoice snapshots.

Safe to re-run: records that already carry snapshots are left alone.

    python -m scripts.backfill_snapshots [--project-id UUID ...]
"""

import argparse
import json
import logging
from pathlib import Path
from uuid import UUID

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--project-id",
        action="append",
        type=UUID,
        dest="project_ids",
        help="Limit to this project (repeatable). Default: every project.",
    )
    args = parser.parse_args(argv)

    load_dotenv(Path(__file__).parent.parent / ".env")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from clients.postgres_client import PostgresClient
    from clients.vault_client import get_database_admin_url
    from core.services.snapshot_backfill import SnapshotBackfill
    from core.stores import Stores

    postgres = PostgresClient(get_database_admin_url())
    try:
        result = SnapshotBackfill(Stores.from_postgres(postgres)).run(args.project_ids)
    finally:
        postgres.close()

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
