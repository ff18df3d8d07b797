"""Create or promote an administrator account from the command line."""

from __future__ import annotations

import argparse
import asyncio
import getpass

from inventory_auth.core.config import get_settings
from inventory_auth.db.session import dispose_engine, get_sessionmaker
from inventory_auth.models import UserRole
from inventory_auth.services import user_service


async def main(email: str, name: str, password: str | None) -> None:
    settings = get_settings()
    sessionmaker = get_sessionmaker(settings.database_url)
    try:
        async with sessionmaker() as session:
            existing = await user_service.get_user_by_email(session, email)
            if existing is not None:
                await user_service.set_role(session, existing, UserRole.ADMINISTRATOR)
                print(f"Promoted {existing.email} to administrator")
                return
            if password is None:
                password = getpass.getpass("Password: ")
            user = await user_service.create_user(
                session,
                email=email,
                password=password,
                name=name,
                role=UserRole.ADMINISTRATOR,
            )
            print(f"Created administrator {user.email} (id {user.id})")
    finally:
        await dispose_engine(settings.database_url)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("--name", default="Administrador")
    parser.add_argument("--password")
    args = parser.parse_args()
    asyncio.run(main(args.email, args.name, args.password))
