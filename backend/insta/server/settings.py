"""Tool server configuration via environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class InstaServerSettings(BaseSettings):
    model_config = {"env_prefix": "IG_", "env_file": ".env", "extra": "ignore"}

    # Credentials used by instagram_login when called without arguments and by
    # the startup auto-login. Both optional: their absence is reported by the
    # login tool, not at startup.
    username: str | None = None
    password: str | None = None

    auto_login: bool = True
    log_dir: str | None = Field(default=None, min_length=1)
    server_name: str = Field(default="insta-mcp", min_length=1)

    def has_credentials(self) -> bool:
        return bool(self.username and self.password)
