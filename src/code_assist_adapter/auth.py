"""
Credential sources and project discovery.

The adapter needs an OAuth2 access token and a Google Cloud project id; how
the token was obtained is outside its concern. This module offers the usual
ways to pick one up:

- a token passed in directly,
- ``GCLOUD_ACCESS_TOKEN`` (e.g. from ``gcloud auth print-access-token``),
- the credential cache written by gemini-cli (``~/.gemini/oauth_creds.json``).

Tokens are never refreshed here; an expired cached token is reported as an
``AuthenticationError`` so the user can log in again with their usual tool.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from code_assist_adapter.constants import (
    ACCESS_TOKEN_ENV_VAR,
    GEMINI_CONFIG_DIR,
    OAUTH_CREDENTIALS_FILE,
    RESOURCE_MANAGER_PROJECTS_URL,
)
from code_assist_adapter.exceptions import AuthenticationError, DecodeError
from code_assist_adapter.transport import HttpTransport

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    def get_token(self) -> str: ...


class StaticTokenSource:
    def __init__(self, token: str) -> None:
        self.token = token

    def get_token(self) -> str:
        if not self.token:
            raise AuthenticationError("Empty access token")
        return self.token


class EnvironmentTokenSource:
    """Reads the access token from an environment variable."""

    def __init__(
        self, var: str = ACCESS_TOKEN_ENV_VAR, env: Mapping[str, str] | None = None
    ) -> None:
        self.var = var
        self.env = os.environ if env is None else env

    def get_token(self) -> str:
        token = self.env.get(self.var, "").strip()
        if not token:
            raise AuthenticationError(f"{self.var} is not set")
        return token


def default_credentials_path() -> Path:
    return Path.home() / GEMINI_CONFIG_DIR / OAUTH_CREDENTIALS_FILE


class CachedCredentialsTokenSource:
    """Reads the access token cached by gemini-cli."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_credentials_path()

    def _validate_credentials_structure(
        self, credentials: dict[str, Any]
    ) -> tuple[bool, list[str]]:
        """Validate the structure and content of cached OAuth credentials.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        token = credentials.get("access_token")
        if token is None:
            errors.append("Missing required field: access_token")
        elif not isinstance(token, str) or not token:
            errors.append("Invalid access_token: must be a non-empty string")

        if "expiry_date" in credentials:
            expiry = credentials["expiry_date"]
            if not isinstance(expiry, int | float):
                errors.append("Invalid expiry_date: must be a number (ms)")
            elif time.time() >= float(expiry) / 1000.0:
                errors.append("Token expired")

        return len(errors) == 0, errors

    def load(self) -> dict[str, Any]:
        if not self.path.is_file():
            raise AuthenticationError(f"Credentials file not found: {self.path}")
        try:
            with self.path.open(encoding="utf-8") as f:
                credentials = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AuthenticationError(
                f"Could not read credentials file {self.path}: {e}"
            ) from e
        if not isinstance(credentials, dict):
            raise AuthenticationError(f"Malformed credentials file: {self.path}")
        return credentials

    def get_token(self) -> str:
        credentials = self.load()
        is_valid, errors = self._validate_credentials_structure(credentials)
        if not is_valid:
            raise AuthenticationError(
                f"Cached credentials unusable: {'; '.join(errors)}",
                details={"path": str(self.path), "errors": errors},
            )
        return str(credentials["access_token"])

    def clear_token_cache(self) -> bool:
        """Delete the cached credentials file. Returns whether a file was removed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"Token cache cleared: {self.path}")
        return True


def resolve_token(sources: Iterable[TokenSource]) -> str:
    """Return the token of the first source that has one.

    Raises:
        AuthenticationError: If no source yields a token; the message lists
            why each source failed
    """
    reasons: list[str] = []
    for source in sources:
        try:
            return source.get_token()
        except AuthenticationError as e:
            reasons.append(e.message)
    raise AuthenticationError(
        "No access token available: " + ("; ".join(reasons) or "no sources configured")
    )


async def list_projects(
    transport: HttpTransport,
    access_token: str,
    *,
    url: str = RESOURCE_MANAGER_PROJECTS_URL,
) -> list[str]:
    """List the ids of the ACTIVE Google Cloud projects visible to the token."""
    response = await transport.get_json(
        url, access_token, context="Failed to list projects"
    )
    try:
        data = response.json()
    except json.JSONDecodeError as e:
        raise DecodeError(f"project list is not JSON: {e}") from e
    projects = data.get("projects") if isinstance(data, dict) else None
    if not isinstance(projects, list):
        return []
    return [
        str(p["projectId"])
        for p in projects
        if isinstance(p, dict)
        and p.get("projectId")
        and p.get("lifecycleState") == "ACTIVE"
    ]
