# =============================================================================
# BARANGAY AUTH SERVICE - TEST USER SEEDING
# =============================================================================
# File: scripts/seed.py
# Description: Creates active admin/official/resident accounts for testing
#              Usage: python -m barangay_auth.scripts.seed
# =============================================================================

from typing import List, Dict, Any, Optional
from datetime import date, datetime, timezone
import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from barangay_auth.auth.repository import UserRepository, AuditLogRepository
from barangay_auth.core.config import settings
from barangay_auth.core.security import password_manager
from barangay_auth.db.base import BaseDBAdapter
from barangay_auth.db.factory import DBFactory
from barangay_auth.db.models import AccountRole, AccountStatus, AuditAction


logger = logging.getLogger(__name__)


TEST_USERS: List[Dict[str, Any]] = [
    {
        "username": "admin",
        "email": "admin@barangay.local",
        "first_name": "System",
        "last_name": "Administrator",
        "date_of_birth": date(1990, 1, 15),
        "phone_number": "09987654321",
        "purok": "Zone 4",
        "role": AccountRole.ADMIN,
    },
    {
        "username": "official1",
        "email": "official@barangay.local",
        "first_name": "Official",
        "last_name": "Officer",
        "date_of_birth": date(1992, 3, 15),
        "phone_number": "09234567890",
        "purok": "Zone 1",
        "role": AccountRole.OFFICIAL,
    },
    {
        "username": "resident1",
        "email": "resident@barangay.local",
        "first_name": "Resident",
        "last_name": "User",
        "date_of_birth": date(1995, 6, 20),
        "phone_number": "09345678901",
        "purok": "Purok 1",
        "role": AccountRole.RESIDENT,
    },
]


async def seed_test_users(
    adapter: BaseDBAdapter,
    password: Optional[str] = None,
    users: Optional[List[Dict[str, Any]]] = None,
) -> List[str]:
    """
    Create each test account in its own transaction.

    Accounts whose username or email already exists are skipped; a failure
    on one account is logged and does not stop the others.

    Returns:
        Usernames that were created
    """
    password = password or settings.seed_default_password
    created: List[str] = []

    for account in users or TEST_USERS:
        try:
            async with adapter.get_session() as session:
                user_repo = UserRepository(session)

                if (
                    await user_repo.exists_username(account["username"])
                    or await user_repo.exists_email(account["email"])
                ):
                    logger.info(f"Seed user {account['username']} already exists, skipping")
                    continue

                password_hash = await run_in_threadpool(password_manager.hash_password, password)
                user = await user_repo.create(
                    password_hash=password_hash,
                    status=AccountStatus.ACTIVE,
                    verified_at=datetime.now(timezone.utc),
                    **account,
                )

                if user.role == AccountRole.RESIDENT:
                    await user_repo.create_resident_profile(user)
                elif user.role == AccountRole.OFFICIAL:
                    await user_repo.create_official_profile(
                        user, position="Barangay Official", office="Official Office"
                    )

                await AuditLogRepository(session).create(
                    action_type=AuditAction.SYSTEM_INIT_USER,
                    resource_type="users",
                    resource_id=user.id,
                    details={"username": user.username, "email": user.email, "role": user.role},
                    ip_address="SYSTEM",
                    user_agent="barangay_auth.scripts.seed",
                )

            created.append(account["username"])
            logger.info(f"Seeded {account['role']} account {account['username']}")

        except SQLAlchemyError as e:
            logger.error(f"Failed to seed {account['username']}: {e}")

    return created


async def main() -> None:
    await DBFactory.connect_all()
    try:
        await DBFactory.create_tables()
        created = await seed_test_users(DBFactory.get_db_adapter())
        logger.info(f"Seeding complete: {len(created)} account(s) created")
    finally:
        await DBFactory.disconnect_all()


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main())
