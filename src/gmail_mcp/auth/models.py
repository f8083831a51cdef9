"""Pydantic models for the on-disk OAuth client and token files."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Literal

from google.oauth2.credentials import Credentials
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gmail_mcp.config import AUTH_URI, TOKEN_URI


class TokenStatus(str, Enum):
    """State of the token file as seen by `gmail-mcp doctor`."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class ClientConfig(BaseModel):
    """OAuth client configuration from the credentials file.

    Google Cloud console downloads wrap the client in either an
    ``installed`` (desktop app) or ``web`` object; both carry the same keys.

    Attributes:
        client_type: Which wrapper the client came from.
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        redirect_uris: Registered redirect targets, in file order.
    """

    model_config = ConfigDict(extra="ignore")

    client_type: Literal["installed", "web"]
    client_id: str
    client_secret: str
    redirect_uris: list[str] = Field(default_factory=list)
    auth_uri: str = AUTH_URI
    token_uri: str = TOKEN_URI

    @classmethod
    def from_file_payload(cls, payload: dict[str, Any]) -> "ClientConfig":
        """Parse the JSON document of a credentials file.

        Raises:
            ValueError: If neither an ``installed`` nor a ``web`` client is present.
        """
        for client_type in ("installed", "web"):
            section = payload.get(client_type)
            if isinstance(section, dict):
                return cls.model_validate({**section, "client_type": client_type})
        raise ValueError("expected an 'installed' or 'web' OAuth client object")

    @property
    def redirect_uri(self) -> str | None:
        """The first registered redirect URI, if any."""
        return self.redirect_uris[0] if self.redirect_uris else None

    def to_flow_config(self, redirect_uri: str) -> dict[str, Any]:
        """Render as the client config dict google-auth-oauthlib expects."""
        return {
            self.client_type: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [redirect_uri],
            }
        }


class StoredToken(BaseModel):
    """OAuth token loaded from the token file.

    Accepts both the google-auth "authorized user" layout (``token``,
    ``scopes``, ``expiry``) and the Node googleapis layout
    (``access_token``, ``scope``, ``expiry_date`` in epoch milliseconds).
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = None
    refresh_token: str | None = None
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"
    token_uri: str = TOKEN_URI
    client_id: str | None = None
    client_secret: str | None = None
    expires_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_layout(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "access_token" not in data and "token" in data:
            data["access_token"] = data.pop("token")
        if "scopes" not in data and "scope" in data:
            scope = data.pop("scope")
            data["scopes"] = scope.split() if isinstance(scope, str) else scope
        if data.get("expires_at") is None:
            if data.get("expiry_date") is not None:
                data["expires_at"] = datetime.fromtimestamp(
                    int(data["expiry_date"]) / 1000, tz=timezone.utc
                )
            elif data.get("expiry"):
                data["expires_at"] = data["expiry"]
        return data

    @field_validator("expires_at")
    @classmethod
    def _ensure_aware(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _require_some_token(self) -> "StoredToken":
        if not self.access_token and not self.refresh_token:
            raise ValueError("token file has neither an access token nor a refresh token")
        return self

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the access token is expired or about to expire.

        A token without a recorded expiry is treated as not expired; the
        google-auth client finds out on first use.
        """
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= self.expires_at

    def to_credentials(self, client: ClientConfig) -> Credentials:
        """Build google-auth credentials bound to the given OAuth client."""
        expiry = None
        if self.expires_at is not None:
            # google-auth compares against naive UTC
            expiry = self.expires_at.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(  # nosec B106 - token_uri is the public Google OAuth endpoint
            token=self.access_token,
            refresh_token=self.refresh_token,
            token_uri=self.token_uri or client.token_uri,
            client_id=self.client_id or client.client_id,
            client_secret=self.client_secret or client.client_secret,
            scopes=self.scopes or None,
            expiry=expiry,
        )
