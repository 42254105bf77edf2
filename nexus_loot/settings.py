"""Application settings and configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATASET_PATH = Path(__file__).parent / "data" / "default_dataset.json"


class Settings(BaseSettings):
    """Settings loaded from NEXUS_LOOT_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="NEXUS_LOOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Nexus Loot API"
    version: str = "1.0.0"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Dataset
    dataset_path: Path = DEFAULT_DATASET_PATH

    # Simulation
    max_simulations: int = Field(default=100_000, ge=1)
    simulation_workers: int = Field(default=4, ge=1)

    # Part composition
    manufacturer_bias_multiplier: float = Field(default=4.0, ge=1.0)

    # Uniques
    world_unique_chance: float = Field(default=0.01, ge=0.0, le=1.0)


settings = Settings()
