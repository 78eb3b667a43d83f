"""Settings for mcpmail.

Centralizes defaults and reads overrides from environment variables
(a .env file is loaded by the CLI before settings are built).
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .backend import DEFAULT_BACKEND_URL
from .exceptions import ConfigurationError
from .llm.factory import GROQ_DEFAULT_MODEL

DEFAULT_HOME = Path("~/.mcpmail")


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", variable=name) from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", variable=name)
    return value


class Settings(BaseModel):
    """Runtime configuration."""

    backend_url: str = Field(default=DEFAULT_BACKEND_URL, description="Mail backend base URL")
    mcp_url: str | None = Field(default=None, description="MCP server URL (default: <backend_url>/mcp)")

    llm_provider: str = Field(default="groq", description="LLM provider: 'groq' or 'openai'")
    llm_api_key: str | None = Field(default=None, repr=False, description="API key for the LLM provider")
    llm_base_url: str | None = Field(default=None, description="Override for the provider's API URL")
    model: str = Field(default=GROQ_DEFAULT_MODEL, description="Model identifier")

    credential_path: Path = Field(default=DEFAULT_HOME / "credentials.json")
    http_timeout: float = Field(default=30.0, gt=0, description="Mail backend request timeout, seconds")
    turn_timeout: float | None = Field(default=None, description="Maximum wait for a response event, seconds")

    log_level: str = Field(default="INFO")
    log_file: Path | None = Field(default=DEFAULT_HOME / "mcpmail.log")

    google_client_id: str | None = None
    google_redirect_uri: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Environment variables:
            MCPMAIL_BACKEND_URL: Mail backend URL (default: https://mail-agent.fastmcp.app)
            MCPMAIL_MCP_URL: MCP server URL (default: <backend>/mcp)
            MCPMAIL_LLM_PROVIDER: groq or openai (default: groq)
            GROQ_API_KEY / OPENAI_API_KEY: Key for the selected provider
            MCPMAIL_LLM_BASE_URL: Override the provider API URL
            MCPMAIL_MODEL: Model (default: moonshotai/kimi-k2-instruct-0905)
            MCPMAIL_CREDENTIAL_PATH: Credential file (default: ~/.mcpmail/credentials.json)
            MCPMAIL_HTTP_TIMEOUT: Backend timeout in seconds (default: 30)
            MCPMAIL_TURN_TIMEOUT: Response timeout in seconds (default: none)
            MCPMAIL_LOG_LEVEL: Logging level (default: INFO)
            MCPMAIL_LOG_FILE: Log file used while the TUI runs (default: ~/.mcpmail/mcpmail.log)
            GOOGLE_CLIENT_ID, GOOGLE_REDIRECT_URI: Authorization entry point

        Raises:
            ConfigurationError: If a numeric variable is invalid
        """
        provider = os.getenv("MCPMAIL_LLM_PROVIDER", "groq").lower()
        key_variable = "OPENAI_API_KEY" if provider == "openai" else "GROQ_API_KEY"
        default_model = "gpt-4o" if provider == "openai" else GROQ_DEFAULT_MODEL

        return cls(
            backend_url=os.getenv("MCPMAIL_BACKEND_URL", DEFAULT_BACKEND_URL),
            mcp_url=os.getenv("MCPMAIL_MCP_URL") or None,
            llm_provider=provider,
            llm_api_key=os.getenv(key_variable) or None,
            llm_base_url=os.getenv("MCPMAIL_LLM_BASE_URL") or None,
            model=os.getenv("MCPMAIL_MODEL", default_model),
            credential_path=Path(os.getenv("MCPMAIL_CREDENTIAL_PATH", str(DEFAULT_HOME / "credentials.json"))),
            http_timeout=_env_float("MCPMAIL_HTTP_TIMEOUT", 30.0),
            turn_timeout=_env_float("MCPMAIL_TURN_TIMEOUT", None),
            log_level=os.getenv("MCPMAIL_LOG_LEVEL", "INFO").upper(),
            log_file=Path(os.getenv("MCPMAIL_LOG_FILE", str(DEFAULT_HOME / "mcpmail.log"))),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID") or None,
            google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI") or None,
        )

    @property
    def resolved_mcp_url(self) -> str:
        return self.mcp_url or f"{self.backend_url.rstrip('/')}/mcp"
