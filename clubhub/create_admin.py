"""Create (or reset) the bootstrap admin account. Admins cannot self-register."""
import argparse
import asyncio
import getpass

from sqlalchemy import select, update

from clubhub.core.database import close_db, get_session_local, init_db
from clubhub.core.security import get_password_hash
from clubhub.models.user import User, UserRole, VerificationStatus


async def create_admin(email: str, password: str, full_name: str) -> str:
    await init_db()
    session_local = get_session_local()
    async with session_local() as db:
        email = email.strip().lower()
        result = await db.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            await db.execute(
                update(User).where(User.id == existing.id).values(
                    hashed_password=get_password_hash(password),
                    role=UserRole.ADMIN,
                    verified=True,
                    verification_status=VerificationStatus.APPROVED,
                    version=User.version + 1,
                )
            )
            admin_id = str(existing.id)
            print(f"Updated existing user as admin: {email}")
        else:
            admin = User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(password),
                role=UserRole.ADMIN,
                verified=True,
                verification_status=VerificationStatus.APPROVED,
            )
            db.add(admin)
            await db.flush()
            admin_id = str(admin.id)
            print(f"Created admin user: {email}")

        await db.commit()
    await close_db()
    return admin_id


def main():
    parser = argparse.ArgumentParser(description="Create the ClubHub admin account")
    parser.add_argument("email")
    parser.add_argument("--name", default="Club Admin")
    args = parser.parse_args()

    password = getpass.getpass("Admin password: ")
    if len(password) < 6:
        raise SystemExit("Password must be at least 6 characters")
    asyncio.run(create_admin(args.email, password, args.name))


if __name__ == "__main__":
    main()
