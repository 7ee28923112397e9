#!/usr/bin/env python3
"""
Seed the configured store with the default FAQ catalog and, optionally, an
admin account.

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --force-faqs
    python scripts/seed_data.py --admin-email admin@company.com --admin-password admin123
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

import argparse
import asyncio
import logging

from supportdesk.config import get_settings
from supportdesk.container import ServiceContainer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed SupportDesk sample data")
    parser.add_argument(
        "--force-faqs",
        action="store_true",
        help="Seed FAQs even when SEED_SAMPLE_FAQS is off",
    )
    parser.add_argument("--admin-email", help="Create an admin with this email")
    parser.add_argument("--admin-password", help="Password for --admin-email")
    parser.add_argument("--admin-name", default="System Administrator")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Main seeding function."""
    args = parse_args(argv)
    settings = get_settings()

    logger.info("=" * 50)
    logger.info(f"Seeding {settings.store_type} store...")
    logger.info("=" * 50)

    services = ServiceContainer.build(settings)
    try:
        if not await services.store.ping():
            logger.error("Store is unreachable")
            return 1

        inserted = await services.seed_faqs(force=args.force_faqs)
        logger.info(f"✓ Inserted {inserted} FAQs")
        for entry in await services.repos.faqs.list():
            logger.info(f"  - [{entry.category}] {entry.question}")

        if args.admin_email:
            if not args.admin_password:
                logger.error("--admin-password is required with --admin-email")
                return 1
            admin = await services.users.ensure_admin(
                args.admin_email,
                args.admin_password,
                args.admin_name,
            )
            logger.info(f"✓ Admin ready: {admin.email}")
        else:
            await services.ensure_bootstrap_admin()

    finally:
        await services.aclose()

    logger.info("=" * 50)
    logger.info("Data seeding completed!")
    logger.info("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
