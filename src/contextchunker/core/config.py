from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict, Any
from pathlib import Path


class Settings(BaseSettings):
    # Chunking defaults
    CHUNK_SIZE: int = Field(default=2000, gt=0)  # characters, not tokens
    CHUNK_OVERLAP: int = Field(default=300, ge=0)
    PRESERVE_CODE_BLOCKS: bool = True  # Keep fenced code blocks whole
    PRESERVE_SECTIONS: bool = True  # Keep header/step sections together

    # Input guard (None disables the limit)
    MAX_DOCUMENT_CHARS: Optional[int] = None

    # Knowledge base validation
    VALIDATE_MAX_CHUNK_CHARS: int = 8000  # Largest chunk the indexer accepts

    # Observability
    LOG_FORMAT: str = "auto"  # json|plain|auto

    model_config = SettingsConfigDict(
        env_prefix="CONTEXTCHUNKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def load_config(cls, config_file: Optional[str] = None) -> "Settings":
        """Load settings with config file -> env -> CLI precedence."""
        config_data: Dict[str, Any] = {}

        # Find config file
        if config_file:
            config_path = Path(config_file)
        else:
            # Auto-discover .contextchunker.{yaml,yml,toml}
            for ext in ["yaml", "yml", "toml"]:
                config_path = Path(f".contextchunker.{ext}")
                if config_path.exists():
                    break
            else:
                config_path = None

        if config_path and config_path.exists():
            if config_path.suffix in [".yaml", ".yml"]:
                import yaml  # type: ignore[import-untyped]

                with open(config_path) as f:
                    config_data = yaml.safe_load(f) or {}
            elif config_path.suffix == ".toml":
                import tomllib

                with open(config_path, "rb") as f:
                    config_data = tomllib.load(f)

        # Config file values are lower priority than environment variables
        config_data = {key.upper(): value for key, value in config_data.items()}
        env_overrides = cls()
        explicit = {key: getattr(env_overrides, key) for key in env_overrides.model_fields_set}
        return cls(**{**config_data, **explicit})


# Default settings - replaced by load_config() during CLI startup
SETTINGS = Settings()
