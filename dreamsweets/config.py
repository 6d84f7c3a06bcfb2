from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dreamsweets.messages import Locale


HTML_DIR = Path(__file__).parent / "assets" / "html"


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DREAMSWEETS_")

    env: Env = Env.local
    html_dir: Path = HTML_DIR
    # The provider keys keep the names their SDKs already use.
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY"),
    )
    google_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("google_api_key", "GOOGLE_API_KEY"),
    )
    concept_model: str = "gpt-4o-mini"
    image_model: str = "gemini-2.5-flash-image"
    image_aspect_ratio: str = "4:3"
    locale: Locale = Locale.ja
    refresh_seconds: int = 2
    max_sessions: int = 1000
    session_ttl: float = 60 * 60
    log_level: str = "INFO"

    @property
    def keys_present(self) -> bool:
        return bool(self.openai_api_key and self.google_api_key)
