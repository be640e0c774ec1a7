"""Configuration management for git-metafix."""

import json
import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class TimeoutsConfig(BaseModel):
    """Timeouts for git subprocesses, in seconds."""

    git_query: float = Field(
        default=30, description="Timeout for local read-only git queries"
    )
    fetch: float = Field(default=60, description="Timeout for git fetch")
    push: float = Field(default=120, description="Timeout for git push")
    # History rewrites on large repositories can take a long time
    rewrite: Optional[float] = Field(
        default=None, description="Timeout for the rewrite tool (None = unbounded)"
    )

    @field_validator("git_query", "fetch", "push", "rewrite")
    @classmethod
    def validate_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("timeouts must be positive")
        return v


class Config(BaseModel):
    """Main configuration model."""

    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    default_remote: str = Field(
        default="origin", description="Remote preferred for fetch and push"
    )
    strategy: Literal["auto", "filter-repo", "filter-branch"] = Field(
        default="auto",
        description="Rewrite tool: probe for filter-repo, or force one",
    )
    fetch_before_inspect: bool = Field(
        default=True,
        description="Fetch the primary remote to compute unpushed commits",
    )

    @field_validator("default_remote")
    @classmethod
    def validate_default_remote(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_remote cannot be empty")
        return v


class ConfigManager:
    """Loads configuration from a JSON file, falling back to defaults."""

    DEFAULT_CONFIG_PATH = Path.home() / ".config" / "git-metafix" / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file or create default."""
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                self._config = Config(**data)
            except Exception as e:
                raise ValueError(f"Failed to load config from {self.config_path}: {e}")
            logger.debug("Loaded configuration from %s", self.config_path)
        else:
            self._config = Config()

        return self._config

    def save(self, config: Optional[Config] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ValueError("No configuration to save")

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(config.model_dump(), f, indent=2)
