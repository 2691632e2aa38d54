import asyncio
import os
from sqlalchemy import select
from fieldforce.auth.utils import hash_password
from fieldforce.config.settings import config_settings
from fieldforce.db.connection import async_engine, async_session
from fieldforce.schema.full_schema import Client, UserRoleName, Users


async def _get_or_create_user(session, email, password, first_name, last_name, role):
    q = await session.execute(select(Users).where(Users.email == email))
    user = q.scalar_one_or_none()
    if user:
        print(f"Found existing {role.value} id={user.id} public_id={user.public_id}")
        return user

    user = Users(email=email, first_name=first_name, last_name=last_name,
                 password_hash=hash_password(password), role=role)
    session.add(user)
    await session.commit()
    print(f"Created {role.value} id={user.id} public_id={user.public_id}")
    return user


async def seed():
    admin_email = config_settings.SEED_ADMIN_EMAIL
    admin_password = config_settings.SEED_ADMIN_PASSWORD
    if not admin_email or not admin_password:
        raise SystemExit("Set SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD before running")

    salesman_email = os.environ.get("SEED_SALESMAN_EMAIL", "salesman@example.com")
    salesman_password = os.environ.get("SEED_SALESMAN_PASSWORD", admin_password)
    client_phone = os.environ.get("SEED_CLIENT_PHONE", "9876543210")

    async with async_session() as session:
        await _get_or_create_user(session, admin_email.lower(), admin_password, "Admin", "", UserRoleName.ADMIN)
        await _get_or_create_user(session, salesman_email.lower(), salesman_password, "Sample", "Salesman",
                                  UserRoleName.SALESMAN)

        q = await session.execute(select(Client).where(Client.phone == client_phone))
        client = q.scalar_one_or_none()
        if not client:
            client = Client(name="Sample Client", company="Sample Traders", phone=client_phone)
            session.add(client)
            await session.commit()
            print(f"Created client public_id={client.public_id}")
        else:
            print(f"Found existing client public_id={client.public_id}")

    await async_engine.dispose()
    print("Done.")

if __name__ == "__main__":
    asyncio.run(seed())
