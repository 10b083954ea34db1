"""Bearer-token acquisition for the Vertex AI endpoint.

The transport only needs "give me an access token"; ``TokenProvider`` is that
seam. The default implementation uses Application Default Credentials, so any
identity configured for the Google Cloud SDK (user login, service account key,
workload identity, metadata server) works unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Protocol, runtime_checkable

import google.auth
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
import google.auth.transport.requests

from prompt2json.constants import CLOUD_PLATFORM_SCOPE
from prompt2json.exceptions import APIError

log = logging.getLogger(__name__)


@runtime_checkable
class TokenProvider(Protocol):
    """Source of OAuth2 bearer tokens."""

    def token(self) -> str: ...  # noqa: D102


class GoogleDefaultTokenProvider:
    """Mints access tokens from Application Default Credentials.

    Credentials are looked up on every call; a run makes exactly one request so
    there is nothing to cache.
    """

    def __init__(self, scopes: Sequence[str] = (CLOUD_PLATFORM_SCOPE,)) -> None:
        self.scopes = tuple(scopes)

    def token(self) -> str:
        """Find default credentials and refresh them into an access token.

        Raises:
            APIError: If no credentials are configured or the refresh fails.
        """
        try:
            credentials, project = google.auth.default(scopes=list(self.scopes))
        except DefaultCredentialsError as e:
            raise APIError(f"failed to get credentials: {e}") from e
        log.debug("Using default credentials (quota project: %s)", project)

        try:
            credentials.refresh(google.auth.transport.requests.Request())
        except GoogleAuthError as e:
            raise APIError(f"failed to get access token: {e}") from e

        if not credentials.token:
            raise APIError("failed to get access token: credentials returned no token")
        return credentials.token
