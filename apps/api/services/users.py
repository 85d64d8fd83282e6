from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from apps.api.core.config import Settings
from apps.api.core.security import create_access_token, hash_password, verify_password
from packages.db.models import UserTable

from .access import PROVISIONABLE_ROLES, Actor, Role, can_manage_users
from .errors import AccessDeniedError, DuplicateEmailError, InvalidCredentialsError, UserValidationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class UserSummary:
    """Display fragment used when resolving user references."""

    id: str
    name: str
    email: str


@dataclass(slots=True)
class User:
    """Account record without credential material."""

    id: str
    name: str
    email: str
    role: Role
    created_at: datetime

    @property
    def actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id, name=self.name, email=self.email)


@dataclass(slots=True)
class LoginResult:
    token: str
    user: User


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def load_user_summaries(session: AsyncSession, user_ids: Iterable[str | None]) -> Mapping[str, UserSummary]:
    """Resolve user ids to display fragments within an open session."""

    wanted = {user_id for user_id in user_ids if user_id}
    if not wanted:
        return {}
    result = await session.execute(select(UserTable).where(UserTable.id.in_(wanted)))
    return {row.id: UserSummary(id=row.id, name=row.name, email=row.email) for row in result.scalars().all()}


def placeholder_summary(user_id: str) -> UserSummary:
    """Fragment used when a referenced account no longer resolves."""

    return UserSummary(id=user_id, name="", email="")


class UserRepository:
    """Persistence helper wrapping the `users` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def create_user(self, *, name: str, email: str, hashed_password: str, role: Role) -> User:
        row = UserTable(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            hashed_password=hashed_password,
            role=role.value,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateEmailError(f"Email {email} is already registered") from exc
            await session.refresh(row)
            return self._table_to_user(row)

    async def get_user(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, user_id)
            return self._table_to_user(row) if row is not None else None

    async def get_credentials(self, email: str) -> tuple[User, str] | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.email == email))
            row = result.scalars().first()
            if row is None:
                return None
            return self._table_to_user(row), row.hashed_password

    async def list_users(self) -> Sequence[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).order_by(UserTable.created_at.desc()))
            return [self._table_to_user(row) for row in result.scalars().all()]

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return User(
            id=row.id,
            name=row.name,
            email=row.email,
            role=Role(row.role),
            created_at=created_at,
        )


class UserService:
    """Account provisioning, lookup and login."""

    def __init__(self, repository: UserRepository, *, settings: Settings) -> None:
        self._repository = repository
        self._settings = settings

    async def get_user(self, user_id: str) -> User | None:
        return await self._repository.get_user(user_id)

    async def authenticate(self, *, email: str, password: str) -> LoginResult:
        found = await self._repository.get_credentials(normalize_email(email))
        if found is None:
            raise InvalidCredentialsError("Invalid email or password")
        user, hashed = found
        if not verify_password(password, hashed):
            logger.warning("Failed login for user %s", user.id)
            raise InvalidCredentialsError("Invalid email or password")

        token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
            settings=self._settings,
        )
        logger.info("User %s logged in", user.id)
        return LoginResult(token=token, user=user)

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: Role | str,
        actor: Actor,
    ) -> User:
        if not can_manage_users(actor.role):
            raise AccessDeniedError("Access denied. Only MANAGER can create users.")
        try:
            resolved_role = Role(role)
        except ValueError as exc:
            raise UserValidationError("Role must be either USER or SUPPORT") from exc
        if resolved_role not in PROVISIONABLE_ROLES:
            raise UserValidationError("Role must be either USER or SUPPORT")
        if not name.strip():
            raise UserValidationError("Name is required")

        normalized = normalize_email(email)
        if await self._repository.get_credentials(normalized) is not None:
            raise DuplicateEmailError(f"Email {normalized} is already registered")

        user = await self._repository.create_user(
            name=name.strip(),
            email=normalized,
            hashed_password=hash_password(password),
            role=resolved_role,
        )
        logger.info("User %s created with role %s by %s", user.id, user.role.value, actor.id)
        return user

    async def list_users(self, *, actor: Actor) -> Sequence[User]:
        if not can_manage_users(actor.role):
            raise AccessDeniedError("Access denied. Only MANAGER can list users.")
        return await self._repository.list_users()

    async def ensure_default_manager(self, *, name: str, email: str, password: str) -> User:
        normalized = normalize_email(email)
        found = await self._repository.get_credentials(normalized)
        if found is not None:
            return found[0]
        try:
            user = await self._repository.create_user(
                name=name,
                email=normalized,
                hashed_password=hash_password(password),
                role=Role.MANAGER,
            )
        except DuplicateEmailError:
            # Another process seeded the account between the lookup and the insert.
            found = await self._repository.get_credentials(normalized)
            if found is None:
                raise
            return found[0]
        logger.info("Default manager %s created", normalized)
        return user
