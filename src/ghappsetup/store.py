"""Credential store interface

The Runtime never interprets credentials; it only holds a reference to a
store and hands it to the installer. Backends (env file, individual files,
parameter store) live outside this package and satisfy CredentialStore.

Models mirror the payload GitHub returns from the app manifest conversion
endpoint (POST /app-manifests/{code}/conversions).
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

# Environment variable names a loaded configuration conventionally uses
ENV_GITHUB_APP_ID = "GITHUB_APP_ID"
ENV_GITHUB_APP_SLUG = "GITHUB_APP_SLUG"
ENV_GITHUB_APP_HTML_URL = "GITHUB_APP_HTML_URL"
ENV_GITHUB_APP_PRIVATE_KEY = "GITHUB_APP_PRIVATE_KEY"
ENV_GITHUB_WEBHOOK_SECRET = "GITHUB_WEBHOOK_SECRET"
ENV_GITHUB_CLIENT_ID = "GITHUB_CLIENT_ID"
ENV_GITHUB_CLIENT_SECRET = "GITHUB_CLIENT_SECRET"


class HookConfig(BaseModel):
    """Webhook configuration returned by GitHub."""

    url: str = ""


class AppCredentials(BaseModel):
    """Credentials returned from GitHub App manifest creation."""

    model_config = ConfigDict(populate_by_name=True)

    app_id: int = Field(alias="id")
    app_slug: str = Field(default="", alias="slug")
    client_id: str = ""
    client_secret: str = ""
    webhook_secret: str = ""
    private_key: str = Field(default="", alias="pem")
    html_url: str = ""
    hook_config: HookConfig = Field(default_factory=HookConfig)

    # App-specific values saved alongside the credentials, never sent by GitHub
    custom_fields: dict[str, str] = Field(default_factory=dict, exclude=True)


class InstallerStatus(BaseModel):
    """Current GitHub App registration state."""

    registered: bool = False
    installer_disabled: bool = False
    app_id: int = 0
    app_slug: str = ""
    html_url: str = ""


@runtime_checkable
class CredentialStore(Protocol):
    """Persists app credentials to some backend."""

    async def save(self, credentials: AppCredentials) -> None: ...

    async def status(self) -> InstallerStatus: ...

    async def disable_installer(self) -> None: ...
