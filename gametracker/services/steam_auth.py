"""Steam OpenID 2.0 sign-in used to link a Steam identity to an account."""

import asyncio
import re
import secrets
import time
from collections.abc import Callable, Mapping
from urllib.parse import parse_qs, urlencode, urlsplit
from uuid import UUID

import httpx
import structlog
from pydantic import BaseModel

from gametracker.core.stores import CsrfTokenStore

logger = structlog.get_logger(__name__)

OPENID_ENDPOINT = "https://steamcommunity.com/openid/login"
OPENID_NS = "http://specs.openid.net/auth/2.0"
IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"

STEAM_ID_REGEX = re.compile(r"^76561[0-9]{12}$")
CLAIMED_ID_REGEX = re.compile(r"/id/([0-9]{17})")

CSRF_TOKEN_TTL = 10 * 60
SWEEP_INTERVAL = 10 * 60


def is_valid_steam_id(steam_id: str) -> bool:
    """Check the 17-digit SteamID64 format."""
    return bool(STEAM_ID_REGEX.match(steam_id))


def extract_steam_id(claimed_id: str) -> str | None:
    """Pull the SteamID64 out of an OpenID claimed identifier URL."""
    match = CLAIMED_ID_REGEX.search(claimed_id)
    return match.group(1) if match else None


class SteamAuthUrl(BaseModel):
    """Redirect URL for the provider and the state bound to it."""

    url: str
    state: str


class SteamAuthResult(BaseModel):
    """Outcome of a callback verification."""

    success: bool
    steam_id: str = ""
    account_id: UUID | None = None
    error: str | None = None


def _failure(error: str) -> SteamAuthResult:
    return SteamAuthResult(success=False, error=error)


class SteamIdentityVerifier:
    """
    Stateless OpenID relying party for Steam.

    Each link attempt is tied to an account through a single-use CSRF token
    embedded in the return URL.
    """

    def __init__(
        self,
        csrf_store: CsrfTokenStore,
        http_client: httpx.AsyncClient,
        return_url: str,
        realm: str,
        clock: Callable[[], float] = time.time,
        timeout: float = 10.0,
    ):
        """
        Initialize the verifier.

        Args:
            csrf_store: Store for pending link tokens
            http_client: Shared HTTP client
            return_url: Callback URL Steam redirects back to
            realm: OpenID realm presented to Steam
            clock: Time source in epoch seconds
            timeout: Timeout for the verification request
        """
        self.csrf_store = csrf_store
        self.http = http_client
        self.return_url = return_url
        self.realm = realm
        self._clock = clock
        self.timeout = timeout

    def generate_auth_url(self, account_id: UUID) -> SteamAuthUrl:
        """
        Start a link attempt.

        Args:
            account_id: Account the Steam identity will be linked to

        Returns:
            Steam sign-in URL and the state token embedded in its return URL
        """
        state = secrets.token_hex(32)
        self.csrf_store.put(state, account_id, self._clock() + CSRF_TOKEN_TTL)

        return_to = f"{self.return_url}?{urlencode({'state': state})}"
        params = {
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": return_to,
            "openid.realm": self.realm,
            "openid.identity": IDENTIFIER_SELECT,
            "openid.claimed_id": IDENTIFIER_SELECT,
        }

        logger.info("steam_auth_url_generated", account_id=str(account_id))
        return SteamAuthUrl(url=f"{OPENID_ENDPOINT}?{urlencode(params)}", state=state)

    def _matches_return_url(self, return_to: str) -> bool:
        expected = urlsplit(self.return_url)
        actual = urlsplit(return_to)
        return (actual.scheme, actual.netloc, actual.path) == (expected.scheme, expected.netloc, expected.path)

    async def _check_authentication(self, params: Mapping[str, str]) -> bool:
        """Ask Steam to confirm the signature of a positive assertion."""
        payload = {key: value for key, value in params.items() if key.startswith("openid.")}
        payload["openid.mode"] = "check_authentication"

        response = await self.http.post(OPENID_ENDPOINT, data=payload, timeout=self.timeout)
        response.raise_for_status()

        fields = dict(line.split(":", 1) for line in response.text.splitlines() if ":" in line)
        return fields.get("is_valid", "").strip() == "true"

    async def verify_callback(self, params: Mapping[str, str]) -> SteamAuthResult:
        """
        Verify Steam's redirect back to the callback URL.

        Args:
            params: Query parameters of the callback request

        Returns:
            Linked Steam ID and account on success, otherwise a failure with a reason
        """
        if params.get("openid.mode") != "id_res":
            return _failure("Invalid OpenID response - missing or invalid mode")

        return_to = params.get("openid.return_to")
        if not return_to:
            return _failure("Missing return_to URL in OpenID response")

        state = (parse_qs(urlsplit(return_to).query).get("state") or [None])[0]
        if not state:
            return _failure("Missing CSRF token in return_to URL")

        # Single use: the token is gone whatever happens next
        entry = self.csrf_store.pop(state)
        if entry is None or entry.expires_at < self._clock():
            logger.warning("steam_auth_invalid_state")
            return _failure("Invalid or expired CSRF token")

        if not self._matches_return_url(return_to):
            return _failure("Verification failed: return_to does not match the callback URL")

        op_endpoint = params.get("openid.op_endpoint")
        if op_endpoint and op_endpoint != OPENID_ENDPOINT:
            return _failure("Verification failed: unexpected OpenID provider")

        signed = set((params.get("openid.signed") or "").split(","))
        if not {"claimed_id", "return_to"} <= signed:
            return _failure("Verification failed: assertion does not sign the claimed identity")

        try:
            authenticated = await self._check_authentication(params)
        except httpx.HTTPError as e:
            logger.error("steam_auth_verification_failed", error=str(e))
            return _failure(f"Verification failed: {e}")

        if not authenticated:
            return _failure("Authentication failed")

        claimed_id = params.get("openid.claimed_id")
        if not claimed_id:
            return _failure("No claimed identifier found")

        steam_id = extract_steam_id(claimed_id)
        if not steam_id or not is_valid_steam_id(steam_id):
            return _failure("Invalid Steam ID format")

        logger.info("steam_auth_verified", account_id=str(entry.account_id))
        return SteamAuthResult(success=True, steam_id=steam_id, account_id=entry.account_id)

    def cleanup_tokens(self) -> int:
        """Remove expired link tokens now."""
        return self.csrf_store.sweep(self._clock())

    async def run_sweeper(self, interval: float = SWEEP_INTERVAL) -> None:
        """Sweep expired link tokens every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            try:
                removed = self.cleanup_tokens()
            except Exception as e:
                logger.error("csrf_token_sweep_failed", error=str(e))
                continue
            if removed:
                logger.info("csrf_tokens_swept", removed=removed)
