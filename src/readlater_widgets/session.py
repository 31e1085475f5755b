"""Bearer-token session for the article service.

One ``Session`` is created at startup and handed to every collaborator
that talks to the service, instead of a token kept in a shared global slot.
"""

import logging
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from pydantic import SecretStr

from .config import Config

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when no token is available or the service rejects it."""


class Session:
    """Holds the current bearer token, if any."""

    def __init__(self, token: str | SecretStr | None = None):
        if isinstance(token, str):
            token = SecretStr(token) if token.strip() else None
        self._token = token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def token(self) -> str:
        """Return the current token.

        Raises:
            AuthenticationError: If the session carries no token
        """
        if self._token is None:
            raise AuthenticationError("Missing token. Open the widget with ?token=... in the URL.")
        return self._token.get_secret_value()

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token()}"}

    def clear(self) -> None:
        self._token = None


def token_from_url(url: str | None) -> str | None:
    """Extract the ``token`` query parameter from a URL or bare query string."""
    if not url:
        return None
    query = urlparse(url).query if "?" in url or "://" in url else url.lstrip("?")
    values = parse_qs(query).get("token")
    if values and values[0].strip():
        return values[0].strip()
    return None


class SessionProvider:
    """Resolves a token from the URL, the environment or the token file."""

    def __init__(self, config: Config):
        self._config = config
        self._token_file = Path(config.token_file)
        self.session: Session | None = None

    def resolve(self, url: str | None = None) -> Session:
        """Build the session. A token found in the URL is persisted for next time."""
        token = token_from_url(url)
        if token:
            logger.debug("Token taken from URL")
            self._store(token)
        elif self._config.token is not None:
            token = self._config.token.get_secret_value()
        else:
            token = self._load()

        if not token:
            logger.warning("No token available; authenticated views are blocked")
        self.session = Session(token)
        return self.session

    def logout(self) -> None:
        if self.session is not None:
            self.session.clear()
        self._token_file.unlink(missing_ok=True)
        logger.info("Logged out")

    def _load(self) -> str | None:
        try:
            token = self._token_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def _store(self, token: str) -> None:
        self._token_file.parent.mkdir(parents=True, exist_ok=True)
        self._token_file.write_text(token, encoding="utf-8")
