"""Async engines and session factories.

Two connections are kept apart: the caller-scoped one used for plain reads of
the caller's own rows, and the service-role one used for credential custody and
cross-user-safe repository writes.
"""

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from neonhub.config import settings

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
service_engine = create_async_engine(settings.service_database_url, pool_pre_ping=True)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)
service_session_factory = async_sessionmaker(service_engine, expire_on_commit=False)
