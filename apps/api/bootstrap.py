"""Create the schema and seed the default manager account.

Run with ``python -m apps.api.bootstrap`` or the ``ticketdesk-init-db`` script.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from apps.api.core.config import Settings, get_settings
from apps.api.core.logging import configure_logging
from apps.api.services.comments import CommentRepository
from apps.api.services.tickets import TicketRepository
from apps.api.services.users import User, UserRepository, UserService

logger = logging.getLogger(__name__)


async def initialise_database(settings: Settings) -> User:
    engine = create_async_engine(settings.async_database_url, echo=settings.database_echo, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        users = UserRepository(session_factory, engine=engine)
        await users.ensure_schema()
        await TicketRepository(session_factory, engine=engine).ensure_schema()
        await CommentRepository(session_factory, engine=engine).ensure_schema()
        manager = await UserService(users, settings=settings).ensure_default_manager(
            name=settings.default_manager_name,
            email=settings.default_manager_email,
            password=settings.default_manager_password,
        )
        logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
        return manager
    finally:
        await engine.dispose()


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    asyncio.run(initialise_database(settings))


if __name__ == "__main__":
    main()
