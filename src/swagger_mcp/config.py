"""Runtime configuration.

`ApiConfig` is built by the CLI from its options.
`Settings` reads process-wide knobs from ``SWAGGER_MCP_*`` environment
variables.
"""

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT = 30.0


class ApiConfig(BaseModel):
    """How tools are compiled and how their requests are sent."""

    model_config = {"frozen": True}

    base_url: str = ""
    include_paths: str = ""  # comma-separated regexes
    exclude_paths: str = ""
    include_methods: str = ""  # comma-separated, case-insensitive
    exclude_methods: str = ""
    security: str = ""  # basic / bearer / apiKey
    basic_auth: str = ""  # user:pass
    api_key_auth: str = ""  # passAs:name=value,...
    bearer_auth: str = ""
    headers: str = ""  # name=value,...
    sse_headers: str = ""  # header names forwarded from inbound SSE requests
    timeout: float = DEFAULT_TIMEOUT

    def custom_headers(self) -> list[tuple[str, str]]:
        """Parse `headers` into (name, value) pairs, skipping malformed entries."""
        pairs = []
        for pair in self.headers.split(","):
            pair = pair.strip()
            if not pair or "=" not in pair:
                continue
            name, value = pair.split("=", 1)
            if name.strip():
                pairs.append((name.strip(), value.strip()))
        return pairs

    def sse_header_names(self) -> list[str]:
        return [name.strip() for name in self.sse_headers.split(",") if name.strip()]


class Settings(BaseSettings):
    """Environment-level settings."""

    model_config = SettingsConfigDict(env_prefix="SWAGGER_MCP_", extra="ignore")

    max_spec_size: str | None = None
    log_level: str = "INFO"
    log_json: bool = False
    timeout: float = DEFAULT_TIMEOUT
