"""Configuration management for embedstore."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain.exceptions import InvalidConfigurationError
from ..core.domain.metric import SimilarityMetric
from ..core.ports.vector_index_port import FilterStrategy


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets copied from consoles or mounted from secret stores may carry a
    BOM that breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from ``EMBEDSTORE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Embedding provider
    embedding_provider: Literal["hash", "sentence-transformers", "gemini"] = "hash"
    embedding_model: str = ""
    embedding_dimension: int = Field(default=384, gt=0)
    embedding_requests_per_minute: int | None = 60
    google_api_key: str = ""

    @field_validator("google_api_key", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Index settings
    metric: SimilarityMetric = SimilarityMetric.COSINE
    filter_strategy: FilterStrategy = FilterStrategy.PRE
    search_chunk_size: int = Field(default=4096, gt=0)

    @field_validator("metric", mode="before")
    @classmethod
    def parse_metric(cls, value: object) -> SimilarityMetric:
        """Accept any spelling SimilarityMetric.parse understands."""
        try:
            return SimilarityMetric.parse(value)
        except InvalidConfigurationError as e:
            # pydantic only turns ValueError into a validation error
            raise ValueError(str(e)) from e

    # Retrieval settings
    default_k: int = Field(default=4, ge=1)
    mmr_lambda: float = Field(default=0.5, ge=0.0, le=1.0)
    mmr_fetch_multiplier: float = Field(default=4.0, ge=1.0)
    max_query_length: int = Field(default=2000, gt=0)

    # Storage
    data_dir: Path = Path("./data")
    snapshot_path: Path | None = None

    # API
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    @property
    def resolved_snapshot_path(self) -> Path:
        """SQLite snapshot location, defaulting to ``data_dir/embedstore.db``."""
        return self.snapshot_path or self.data_dir / "embedstore.db"

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.resolved_snapshot_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
