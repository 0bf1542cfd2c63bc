import sys
import asyncio
from sqlalchemy.future import select
from dispatchdesk.core.security import hash_password
from dispatchdesk.core.enums import UserRole
from dispatchdesk.db.session import engine, AsyncSessionLocal
from dispatchdesk.models.base import Base
from dispatchdesk.models.user import User
from dispatchdesk.models import audit  # noqa: F401


async def create_admin_user(username: str, password: str) -> bool:
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with AsyncSessionLocal() as db:
            res = await db.execute(select(User).where(User.username == username))
            if res.scalars().first():
                print(f"Error: User '{username}' already exists")
                return False

            user = User(username=username, password_hash=hash_password(password), role=UserRole.ADMIN)
            db.add(user)
            await db.commit()

            print(f"Admin user '{username}' created successfully")
            print(f"User ID: {user.id}")
            print("Role: admin")
            return True

    except Exception as e:
        print(f"Error creating admin user: {str(e)}")
        return False
    finally:
        await engine.dispose()


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password>")
        sys.exit(1)

    username = sys.argv[1]
    password = sys.argv[2]

    if not username or not password:
        print("Error: username and password cannot be empty")
        sys.exit(1)

    success = asyncio.run(create_admin_user(username, password))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
