"""Bearer tokens for the Dialogflow API.

Tokens are never cached: every request asks its ``TokenSource`` for a fresh
one. ``GoogleTokenSource`` resolves Application Default Credentials through
``google-auth`` (service account file, gcloud user credentials, or the
metadata server) and refreshes them on each call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

from typed_dialogflow.core.config import Settings
from typed_dialogflow.core.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

DIALOGFLOW_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/dialogflow",)


class TokenSource(Protocol):
    async def __call__(self) -> str: ...


class StaticTokenSource:
    """Returns a pre-issued access token (``DIALOGFLOW_ACCESS_TOKEN``)."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ConfigurationError("Access token must not be empty")
        self._token = token

    async def __call__(self) -> str:
        return self._token


class GoogleTokenSource:
    def __init__(self, scopes: Sequence[str] = DIALOGFLOW_SCOPES) -> None:
        self._scopes = list(scopes)

    async def __call__(self) -> str:
        return await asyncio.to_thread(self._fetch_token)

    def _fetch_token(self) -> str:
        import google.auth
        from google.auth.exceptions import GoogleAuthError
        from google.auth.transport.requests import Request

        try:
            credentials, _ = google.auth.default(scopes=self._scopes)
            credentials.refresh(Request())
        except GoogleAuthError as exc:
            logger.warning("Google credentials unavailable: %s", exc)
            raise AuthenticationError(f"No Google credentials available: {exc}") from exc

        if not credentials.token:
            raise AuthenticationError("Google credentials returned an empty token")
        return credentials.token


def default_project_id() -> str | None:
    """Project id of the Application Default Credentials, if any."""
    import google.auth
    from google.auth.exceptions import DefaultCredentialsError

    try:
        _, project_id = google.auth.default(scopes=list(DIALOGFLOW_SCOPES))
    except DefaultCredentialsError as exc:
        logger.info("No default Google credentials: %s", exc)
        return None
    return project_id


def resolve_token_source(settings: Settings) -> TokenSource:
    if settings.dialogflow_access_token:
        return StaticTokenSource(settings.dialogflow_access_token)
    return GoogleTokenSource()


async def resolve_project_id(settings: Settings) -> str:
    """Configured project id, else the one attached to the default credentials."""
    if settings.dialogflow_project_id:
        return settings.dialogflow_project_id

    project_id = await asyncio.to_thread(default_project_id)
    if not project_id:
        raise ConfigurationError(
            "DIALOGFLOW_PROJECT_ID is not set and the default Google credentials "
            "carry no project id"
        )
    return project_id
