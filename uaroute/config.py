# uaroute/config.py

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

BUNDLED_RULES = Path(__file__).parent / "data" / "regexes.yaml"


class Settings(BaseSettings):
    # HTTP bind address
    host: str = "0.0.0.0"
    port: int = 8080

    # User-agent rule document (uap-core regexes.yaml format)
    regexes_path: Path = BUNDLED_RULES
    match_timeout_seconds: Optional[float] = 1.0

    # Compile rules during startup and refuse to start if that fails
    eager_init: bool = True

    # Zone routing document: local file, or remote URL
    zones_path: Optional[Path] = None
    zones_url: Optional[str] = None
    zones_token: Optional[str] = None
    zones_refresh_seconds: int = 60

    # MySQL connection
    db_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "uaroute"
    db_password: str = "changeme"
    db_name: str = "uaroute"

    # Connection pool
    db_pool_size: int = 5
    db_pool_overflow: int = 10

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url
        password = quote_plus(self.db_password)
        return (
            f"mysql+pymysql://{self.db_user}:{password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    class Config:
        env_file = ".env"
        env_prefix = "UAROUTE_"


settings = Settings()
