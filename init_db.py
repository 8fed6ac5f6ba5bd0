"""
Database initialization script.
Creates all tables; `python init_db.py seed` also adds a tenant, an admin
user and one router so the dashboard can be tried against a real device.

Seed values come from the environment:
  SEED_TENANT, SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD,
  MIKROTIK_HOST, MIKROTIK_PORT, MIKROTIK_USERNAME, MIKROTIK_PASSWORD
"""
import asyncio
import os
import sys

from sqlalchemy import select

from app.config import settings
from app.core.security import create_access_token, encrypt_router_password, hash_password
from app.db.database import AsyncSessionLocal, create_tables
from app.db.models import Router, Tenant, User, UserRole


async def init_db():
    await create_tables()

    print("Database tables created successfully!")


async def seed_db():
    email = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")

    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(User).where(User.email == email))
        user = existing.scalar_one_or_none()
        if user:
            print(f"  User {email} already exists, skipping seed")
        else:
            tenant = Tenant(name=os.getenv("SEED_TENANT", "Demo ISP"))
            db.add(tenant)
            await db.flush()

            user = User(
                email=email,
                password_hash=hash_password(os.getenv("SEED_ADMIN_PASSWORD", "changeme")),
                role=UserRole.ADMIN,
                tenant_id=tenant.id,
            )
            router = Router(
                tenant_id=tenant.id,
                name=f"{tenant.name} core",
                ip_address=settings.MIKROTIK_HOST,
                port=settings.MIKROTIK_PORT,
                username=settings.MIKROTIK_USERNAME,
                password=encrypt_router_password(settings.MIKROTIK_PASSWORD),
            )
            db.add_all([user, router])
            await db.commit()
            print(f"  Added tenant {tenant.id}, admin {email} and router {router.id} ({router.ip_address})")

        token = create_access_token({
            "sub": str(user.id),
            "user_id": user.id,
            "role": user.role.value,
            "tenant_id": user.tenant_id,
        })
        print(f"  Bearer token: {token}")

    print("Database seed completed!")


async def main(argv):
    await init_db()
    if len(argv) > 1 and argv[1] == "seed":
        await seed_db()


if __name__ == "__main__":
    asyncio.run(main(sys.argv))
