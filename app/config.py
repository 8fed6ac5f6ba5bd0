from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # Optional if you use a .env file

class Settings(BaseSettings):
    # SQLite for local runs; postgresql:// URLs are switched to asyncpg in app.db.database
    DATABASE_URL: str = "sqlite+aiosqlite:///./router_dashboard.db"
    SECRET_KEY: str = "your-secret-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Fernet key for stored router passwords. Derived from SECRET_KEY when empty.
    ROUTER_ENCRYPTION_KEY: str = ""

    # RouterOS API client
    MIKROTIK_CONNECT_TIMEOUT: float = 5
    MIKROTIK_TIMEOUT: float = 15
    MIKROTIK_POOL_SIZE: int = 0  # idle connections kept per router, 0 disables pooling
    MIKROTIK_POOL_IDLE_SECONDS: int = 60

    # Defaults for diagnose_mikrotik.py
    MIKROTIK_HOST: str = "192.168.88.1"
    MIKROTIK_PORT: int = 8728
    MIKROTIK_USERNAME: str = "admin"
    MIKROTIK_PASSWORD: str = ""

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

settings = Settings()
