"""Создает пользователя: python scripts/create_user.py <email> <name> <password> [user|admin]"""
import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from onboard.core.database import AsyncSessionLocal
from onboard.core.init_db import init_db
from onboard.core.security import ROLE_USER
from onboard.services.user import UserService


async def main(email: str, name: str, password: str, role: str) -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        service = UserService(session)
        if await service.get_by_email(email):
            print(f"Пользователь {email} уже существует")
            return
        user = await service.create(name=name, email=email, password=password, role=role)
        print(f"Создан пользователь id={user.id} email={user.email} role={user.role}")


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3], sys.argv[4] if len(sys.argv) > 4 else ROLE_USER))
