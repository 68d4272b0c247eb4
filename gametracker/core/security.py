"""Security utilities for JWT and password handling."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from gametracker.config import Settings

BCRYPT_ROUNDS = 12

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


class AccessTokenPayload(BaseModel):
    """Identity carried by a verified access token."""

    account_id: UUID
    email: str


class RefreshTokenPayload(BaseModel):
    """Identity carried by a verified refresh token."""

    account_id: UUID


class TokenService:
    """Issue and verify signed access and refresh tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        issuer: str = "gametracker-api",
        audience: str = "gametracker-client",
        access_expires: timedelta = timedelta(days=7),
        refresh_expires: timedelta = timedelta(days=30),
    ):
        """Initialize token service with signing secrets and claim settings."""
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use distinct secrets")
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        """Build a token service from application settings."""
        return cls(
            access_secret=settings.jwt_secret_key,
            refresh_secret=settings.jwt_refresh_secret_key,
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_expires=timedelta(days=settings.access_token_expire_days),
            refresh_expires=timedelta(days=settings.refresh_token_expire_days),
        )

    def _encode(
        self,
        claims: dict[str, Any],
        secret: str,
        token_type: str,
        expires_delta: timedelta,
    ) -> str:
        now = datetime.now(UTC)
        to_encode = claims.copy()
        to_encode.update(
            {
                "iat": now,
                "exp": now + expires_delta,
                "iss": self.issuer,
                "aud": self.audience,
                "type": token_type,
                "jti": uuid4().hex,
            }
        )
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str, token_type: str) -> dict[str, Any] | None:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except (JWTError, AttributeError, TypeError):
            return None

        if payload.get("type") != token_type:
            return None

        return payload

    def create_access_token(
        self,
        account_id: UUID | str,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a JWT access token.

        Args:
            account_id: Account identifier
            email: Account email
            expires_delta: Optional expiration override

        Returns:
            Encoded JWT token
        """
        return self._encode(
            {"sub": str(account_id), "email": email},
            self.access_secret,
            "access",
            expires_delta or self.access_expires,
        )

    def create_refresh_token(
        self,
        account_id: UUID | str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a JWT refresh token."""
        return self._encode(
            {"sub": str(account_id)},
            self.refresh_secret,
            "refresh",
            expires_delta or self.refresh_expires,
        )

    def verify_access_token(self, token: str) -> AccessTokenPayload | None:
        """
        Decode and validate a JWT access token.

        Args:
            token: JWT token to decode

        Returns:
            Token identity or None if invalid
        """
        payload = self._decode(token, self.access_secret, "access")
        if payload is None:
            return None

        try:
            return AccessTokenPayload(account_id=payload.get("sub"), email=payload.get("email"))
        except ValidationError:
            return None

    def verify_refresh_token(self, token: str) -> RefreshTokenPayload | None:
        """Decode and validate a JWT refresh token."""
        payload = self._decode(token, self.refresh_secret, "refresh")
        if payload is None:
            return None

        try:
            return RefreshTokenPayload(account_id=payload.get("sub"))
        except ValidationError:
            return None

    def refresh_token_expires_at(self) -> datetime:
        """Expiry timestamp to persist alongside a freshly issued refresh token."""
        return datetime.now(UTC) + self.refresh_expires
