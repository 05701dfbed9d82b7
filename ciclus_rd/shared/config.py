"""
Ciclus RD - Configuration Management
Centralized configuration with environment variable support
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


# Get project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / '.env'),
        env_file_encoding='utf-8',
        env_prefix='CICLUS_',
        case_sensitive=False,
        extra='ignore'
    )

    # Application
    app_name: str = "Ciclus RD"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite:///./data/ciclus_rd.db"

    # Security
    secret_key: str = "ciclus-default-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 12
    login_email_domain: str = "ciclus.com"

    # Elevated backend functions (delete-user). Off until the operator configures it.
    admin_functions_enabled: bool = False

    # Photo storage
    photo_dir: str = "./assets/photos"  # flet serves assets/ at the app root
    photo_base_url: str = "/photos"
    photo_max_dimension: int = 1280
    photo_jpeg_quality: int = 75

    # Geocoding (OpenStreetMap)
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    geocoding_user_agent: str = "ciclus-rd/1.0"
    geocoding_country_codes: str = "br"
    geocoding_timeout: float = 10.0
    gps_timeout: float = 15.0
    nearby_radius_m: int = 500
    nearby_limit: int = 30
    address_min_query_length: int = 4
    address_debounce_ms: int = 600

    # Background tasks
    connection_poll_seconds: float = 30.0

    # Daily goals
    goal_capina_m_per_day: float = 1950.0
    goal_rocagem_m2_per_day: float = 1000.0

    # Logging
    log_level: str = "INFO"
    log_file: str = "./logs/ciclus_rd.log"

    @property
    def database_path(self) -> Optional[Path]:
        """Get database file path (None for non-file databases)"""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url.replace("sqlite:///", ""))
        return None


# Global settings instance
settings = Settings()


# Create necessary directories
def ensure_directories(config: Settings = settings):
    """Create required directories if they don't exist"""
    directories = [
        Path(config.log_file).parent,
        Path(config.photo_dir),
        Path("./exports"),
    ]
    if config.database_path is not None:
        directories.append(config.database_path.parent)
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
