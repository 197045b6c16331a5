from typing import List, Literal

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Salon Booking API"
    API_PREFIX: str = "/api/bookings"

    # Server
    PORT: int = 5000
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3001",
        "http://localhost:3002",
        "http://127.0.0.1:3002",
    ]

    # Store
    STORE_BACKEND: Literal["supabase", "memory"] = "supabase"
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_TABLE: str = "bookings"

    # Booking rules
    DEGRADED_MODE_ENABLED: bool = False
    ANY_STYLIST_BLOCKS_SLOT: bool = True
    DELETE_MODE: Literal["cancel", "hard"] = "cancel"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str = "logs/errors.log"

    # Admin panel
    ADMIN_API_URL: str = "http://localhost:5000/api/bookings"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def degraded_mode_allowed(self) -> bool:
        # Never in production, whatever the flag says
        return self.DEGRADED_MODE_ENABLED and self.ENVIRONMENT.lower() != "production"

settings = Settings()
