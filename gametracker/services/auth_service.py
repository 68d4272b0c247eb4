"""Authentication service for registration, login and token rotation."""

from uuid import UUID

import structlog
from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gametracker.core.exceptions import UnauthorizedException
from gametracker.core.security import TokenService, verify_password
from gametracker.core.timeutils import utcnow
from gametracker.models.accounts import accounts
from gametracker.models.refresh_tokens import refresh_tokens
from gametracker.schemas.auth import TokenPair
from gametracker.services.account_service import AccountService

logger = structlog.get_logger(__name__)


class AuthService:
    """Authentication service handling passwords and persisted refresh tokens."""

    def __init__(self, token_service: TokenService):
        """Initialize auth service with the shared token service."""
        self.tokens = token_service

    async def _issue_tokens(self, db: AsyncSession, account_id: UUID, email: str) -> TokenPair:
        """Create a token pair and persist the refresh token."""
        access_token = self.tokens.create_access_token(account_id, email)
        refresh_token = self.tokens.create_refresh_token(account_id)

        await db.execute(
            refresh_tokens.insert().values(
                token=refresh_token,
                account_id=account_id,
                expires_at=self.tokens.refresh_token_expires_at(),
            )
        )

        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def register(
        self, db: AsyncSession, email: str, username: str, password: str
    ) -> tuple[dict, TokenPair]:
        """
        Register an account and sign it in.

        Args:
            db: Database session
            email: Account email
            username: Public username
            password: Plain text password

        Returns:
            Tuple of (account dict, token pair)
        """
        account = await AccountService.create_account(db, email, username, password)
        tokens = await self._issue_tokens(db, account["id"], account["email"])
        await db.commit()

        logger.info("account_registered", account_id=str(account["id"]))
        return account, tokens

    async def login(self, db: AsyncSession, email: str, password: str) -> tuple[dict, TokenPair]:
        """
        Verify credentials and issue a fresh token pair.

        Earlier refresh tokens of the account are discarded.

        Raises:
            UnauthorizedException: If the email is unknown or the password is wrong
        """
        account = await AccountService.get_by_email(db, email)
        if not account or not verify_password(password, account["password_hash"]):
            logger.info("login_failed", email=email)
            raise UnauthorizedException("Invalid credentials", "INVALID_CREDENTIALS")

        await db.execute(delete(refresh_tokens).where(refresh_tokens.c.account_id == account["id"]))
        tokens = await self._issue_tokens(db, account["id"], account["email"])
        await db.commit()

        logger.info("login_succeeded", account_id=str(account["id"]))
        return account, tokens

    async def refresh(self, db: AsyncSession, refresh_token: str | None) -> TokenPair:
        """
        Rotate a refresh token.

        Args:
            db: Database session
            refresh_token: Refresh token issued earlier

        Returns:
            New token pair; the presented token stops working

        Raises:
            UnauthorizedException: If the token is missing, invalid, unknown or expired
        """
        if not refresh_token:
            raise UnauthorizedException("Refresh token required", "REFRESH_TOKEN_REQUIRED")

        payload = self.tokens.verify_refresh_token(refresh_token)
        if payload is None:
            raise UnauthorizedException("Invalid refresh token", "INVALID_REFRESH_TOKEN")

        query = (
            select(refresh_tokens.c.id, accounts.c.email)
            .join(accounts, accounts.c.id == refresh_tokens.c.account_id)
            .where(
                and_(
                    refresh_tokens.c.token == refresh_token,
                    refresh_tokens.c.account_id == payload.account_id,
                    refresh_tokens.c.expires_at > utcnow(),
                )
            )
        )
        result = await db.execute(query)
        stored = result.mappings().first()
        if not stored:
            raise UnauthorizedException("Refresh token expired or not found", "REFRESH_TOKEN_EXPIRED")

        await db.execute(delete(refresh_tokens).where(refresh_tokens.c.id == stored["id"]))
        tokens = await self._issue_tokens(db, payload.account_id, stored["email"])
        await db.commit()

        logger.info("refresh_token_rotated", account_id=str(payload.account_id))
        return tokens

    async def logout(self, db: AsyncSession, account_id: UUID, refresh_token: str | None = None) -> None:
        """Revoke one refresh token, or every refresh token of the account."""
        query = delete(refresh_tokens).where(refresh_tokens.c.account_id == account_id)
        if refresh_token:
            query = query.where(refresh_tokens.c.token == refresh_token)

        await db.execute(query)
        await db.commit()
        logger.info("logout", account_id=str(account_id), all_sessions=not refresh_token)
