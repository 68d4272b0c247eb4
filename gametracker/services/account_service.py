"""Account service for business logic."""

from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.exceptions import BadRequestException, ConflictException, NotFoundException
from gametracker.core.security import get_password_hash
from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import accounts
from gametracker.models.games import GameSource, games
from gametracker.schemas.accounts import ProfileUpdate


class AccountService:
    """Service for account operations."""

    @staticmethod
    async def get_by_id(db: AsyncSession, account_id: UUID) -> dict | None:
        """Get account by ID."""
        result = await db.execute(select(accounts).where(accounts.c.id == account_id))
        account = result.mappings().first()
        return dict(account) if account else None

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> dict | None:
        """Get account by email."""
        result = await db.execute(select(accounts).where(accounts.c.email == email))
        account = result.mappings().first()
        return dict(account) if account else None

    @staticmethod
    async def find_conflict(db: AsyncSession, email: str, username: str) -> str | None:
        """Return the name of the field already taken by another account, if any."""
        query = select(accounts.c.email, accounts.c.username).where(
            or_(accounts.c.email == email, accounts.c.username == username)
        )
        result = await db.execute(query)
        existing = result.mappings().first()
        if not existing:
            return None
        return "email" if existing["email"] == email else "username"

    @staticmethod
    async def create_account(db: AsyncSession, email: str, username: str, password: str) -> dict:
        """
        Create a new account with a hashed password.

        Args:
            db: Database session
            email: Account email
            username: Public username
            password: Plain text password

        Returns:
            Created account

        Raises:
            ConflictException: If the email or username is taken
        """
        field = await AccountService.find_conflict(db, email, username)
        if field:
            raise ConflictException(f"User with this {field} already exists", "USER_EXISTS")

        query = (
            accounts.insert()
            .values(email=email, username=username, password_hash=get_password_hash(password))
            .returning(accounts)
        )
        result = await db.execute(query)
        account = result.mappings().first()

        if not account:
            raise ValueError("Failed to create account")

        return dict(account)

    @staticmethod
    async def count_games(db: AsyncSession, account_id: UUID, source: GameSource | None = None) -> int:
        """Count non-deleted library entries, optionally for one source."""
        conditions = [games.c.account_id == account_id, games.c.is_deleted.is_(False)]
        if source is not None:
            conditions.append(games.c.source == source.value)

        result = await db.execute(select(func.count()).select_from(games).where(and_(*conditions)))
        return result.scalar_one()

    @staticmethod
    async def get_detail(db: AsyncSession, account_id: UUID) -> dict:
        """Get account with its library size."""
        account = await AccountService.get_by_id(db, account_id)
        if not account:
            raise NotFoundException("User not found", "USER_NOT_FOUND")

        account["game_count"] = await AccountService.count_games(db, account_id)
        return account

    @staticmethod
    async def update_profile(db: AsyncSession, account_id: UUID, data: ProfileUpdate) -> dict:
        """
        Update username and/or visibility.

        Raises:
            BadRequestException: If no field was supplied
            ConflictException: If the new username is taken
        """
        update_data = {key: value for key, value in data.model_dump(exclude_unset=True).items() if value is not None}
        if not update_data:
            raise BadRequestException("No fields to update", "NO_UPDATE_FIELDS")

        if "username" in update_data:
            taken = await db.execute(
                select(accounts.c.id).where(
                    and_(accounts.c.username == update_data["username"], accounts.c.id != account_id)
                )
            )
            if taken.first():
                raise ConflictException("User with this username already exists", "USER_EXISTS")

        update_data["updated_at"] = utcnow()
        query = update(accounts).where(accounts.c.id == account_id).values(**update_data).returning(accounts)
        result = await db.execute(query)
        account = result.mappings().first()
        await db.commit()

        if not account:
            raise NotFoundException("User not found", "USER_NOT_FOUND")
        return dict(account)
