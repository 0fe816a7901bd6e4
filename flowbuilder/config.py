# flowbuilder/config.py
from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    app_name: str = "Flow Builder"

    export_prefix: str = Field(default="flow")
    default_section_title: str = Field(default="General")

    start_node_type: str = Field(default="start")
    # Zero or several root nodes fail validation instead of first-pick
    strict_start_node: bool = Field(default=False)
    allow_self_loops: bool = Field(default=True)

    node_width: float = Field(default=160.0)
    node_height: float = Field(default=70.0)
    random_origin: float = Field(default=100.0)
    random_spread: float = Field(default=200.0)

    relation_debounce_seconds: float = Field(default=0.5)
    relation_scroll_threshold: float = Field(default=20.0)
    relation_base_url: Optional[str] = Field(default=None)
    relation_timeout: float = Field(default=10.0)

    log_level: str = Field(default="WARNING")

    model_config = SettingsConfigDict(
        env_prefix="FLOWBUILDER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()
