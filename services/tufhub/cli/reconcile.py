"""
Reconciliation sweep for namespaces whose creation was interrupted.

Safe to run repeatedly (e.g. from a CronJob): complete namespaces are
promoted, incomplete ones are only reported.
Run via: python -m tufhub.cli.reconcile [--grace-seconds N]

Exits 1 when any namespace needs operator attention.
"""

import argparse
import asyncio
import sys

from tufhub.config import settings
from tufhub.db.session import close_db, get_db_session, init_db
from tufhub.keystore import close_keystore, get_keystore, init_keystore
from tufhub.logging_config import configure_logging, get_logger
from tufhub.redis.client import close_redis, init_redis
from tufhub.services.reconcile_service import reconcile_pending_namespaces
from tufhub.storage import close_storage, get_storage, init_storage

logger = get_logger("tufhub.reconcile")


async def reconcile(grace_seconds: int | None) -> int:
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    await init_db()
    await init_redis()
    await init_storage()
    await init_keystore()

    try:
        async with get_db_session() as db:
            result = await reconcile_pending_namespaces(
                db, get_storage(), get_keystore(), grace_seconds=grace_seconds
            )
    finally:
        await close_keystore()
        await close_storage()
        await close_redis()
        await close_db()

    logger.info(
        "Reconciliation complete",
        promoted=len(result.promoted),
        incomplete=len(result.incomplete),
    )
    return 1 if result.incomplete else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--grace-seconds",
        type=int,
        default=None,
        help="Only consider namespaces pending for longer than this (default from config)",
    )
    args = parser.parse_args(argv)
    return asyncio.run(reconcile(args.grace_seconds))


if __name__ == "__main__":
    sys.exit(main())
