"""Simple connectivity check for the MongoDB store used by the backend.
Run this after starting MongoDB to verify Motor can connect:

    python -m chatroom.check_mongo
"""
import asyncio
import sys

import motor.motor_asyncio

from .settings import get_settings


async def probe(client, database_name):
    """Return the server's database names and the chat collection sizes."""
    dbs = await client.list_database_names()
    db = client.get_default_database(database_name)
    counts = {}
    for name in ('participants', 'messages'):
        counts[name] = await db[name].count_documents({})
    return dbs, counts


async def main():
    settings = get_settings()
    print('Using DATABASE_URL=', settings.database_url)
    client = motor.motor_asyncio.AsyncIOMotorClient(settings.database_url, serverSelectionTimeoutMS=5000)
    try:
        dbs, counts = await probe(client, settings.database_name)
        print('Connected to MongoDB, databases:', dbs)
        for name, n in counts.items():
            print(f'  {name}: {n} documents')
        return 0
    except Exception as e:
        print('Connection failed:', e)
        return 1
    finally:
        client.close()


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
