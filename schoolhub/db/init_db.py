"""
Create the schema and seed the first admin account.

Run once with env set:
  ADMIN_EMAIL=admin@school.example
  ADMIN_PASSWORD=YourSecurePassword

  python -m schoolhub.db.init_db
"""
import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth.models import User
from schoolhub.auth.security import hash_password
from schoolhub.core.config import settings
from schoolhub.core.enums import UserRole
from schoolhub.db.session import AsyncSessionLocal, create_tables, engine

logger = logging.getLogger(__name__)


async def seed_admin(db: AsyncSession) -> bool:
    """Create the admin from settings, or re-activate it. Returns True when a row was written."""
    if not settings.admin_email or not settings.admin_password:
        logger.info("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin user")
        return False

    email = settings.admin_email.lower()
    result = await db.execute(select(User).where(func.lower(User.email) == email))
    admin = result.scalar_one_or_none()
    if admin is None:
        db.add(
            User(
                first_name=settings.admin_first_name,
                last_name=settings.admin_last_name,
                email=email,
                password_hash=hash_password(settings.admin_password),
                role=UserRole.ADMIN.value,
                is_active=True,
            )
        )
        logger.info("Created admin user %s", email)
    elif admin.role != UserRole.ADMIN or not admin.is_active:
        admin.role = UserRole.ADMIN.value
        admin.is_active = True
        logger.info("Promoted existing user %s to active admin", email)
    else:
        logger.info("Admin user %s already exists", email)
        return False
    await db.commit()
    return True


async def main() -> None:
    await create_tables(engine)
    async with AsyncSessionLocal() as db:
        await seed_admin(db)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    asyncio.run(main())
