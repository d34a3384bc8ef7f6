"""Configuration management using Pydantic settings."""

from typing import TYPE_CHECKING, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import MissingCredentialError

if TYPE_CHECKING:
    from .models import SearchOptions

DEFAULT_ENDPOINT = "https://open.bigmodel.cn/api/mcp/web_search_prime/mcp"
TOOL_NAME = "webSearchPrime"
CLIENT_NAME = "bigmodel-search-mcp"

# Standard environment variable for the BigModel credential
API_KEY_ENV_VAR = "BIGMODEL_API_KEY"


class SearchSettings(BaseSettings):
    """Web search client configuration.

    Priority: init kwargs > Environment Variables > env file > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="BIGMODEL_SEARCH_", extra="ignore", populate_by_name=True)

    api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(API_KEY_ENV_VAR, "BIGMODEL_SEARCH_API_KEY"),
        description="Bearer credential for the BigModel MCP endpoint",
    )
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="MCP endpoint URL")
    reuse_connection: bool = Field(default=True, description="Reuse cached MCP sessions")
    validate_tool_availability: bool = Field(default=False, description="List remote tools before calling")
    timeout_ms: Optional[int] = Field(default=None, description="Soft timeout for the tool call in milliseconds")
    session_ttl_seconds: Optional[float] = Field(default=None, description="Replace cached sessions older than this")
    evict_failed_sessions: bool = Field(default=False, description="Drop cached sessions whose connect failed")
    logging_level: str = Field(default="WARNING")

    def get_api_key(self) -> Optional[str]:
        """Extract API key value from SecretStr."""
        return self.api_key.get_secret_value() if self.api_key else None

    def to_options(self) -> "SearchOptions":
        """Build a per-call options bag from these settings."""
        from .models import SearchOptions

        return SearchOptions(
            api_key=self.api_key,
            endpoint=self.endpoint,
            reuse_connection=self.reuse_connection,
            validate_tool_availability=self.validate_tool_availability,
            timeout_ms=self.timeout_ms,
        )


def load_settings(env_file: str | None = None) -> SearchSettings:
    """Load settings from the environment, optionally overlaying an env file.

    Only outer boundaries (the CLI) pass ``env_file``; the library never reads files.
    """
    if env_file:
        return SearchSettings(_env_file=env_file)  # type: ignore[call-arg]
    return SearchSettings()


def require_api_key(api_key: str | SecretStr | None) -> str:
    """Return the credential text or raise if it is absent or blank."""
    if isinstance(api_key, SecretStr):
        api_key = api_key.get_secret_value()
    if not api_key or not api_key.strip():
        raise MissingCredentialError(f"Missing BigModel API key: pass api_key or set {API_KEY_ENV_VAR}")
    return api_key
