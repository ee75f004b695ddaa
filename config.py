from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # MongoDB Configuration
    mongo_url: str
    db_name: str

    # Application Configuration
    frontend_url: str = "http://localhost:3000"
    environment: str = "development"

    # JWT Configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24 * 7  # 7 days

    # Workflow
    seed_default_principals: bool = True
    completion_note: str = "Completed by CSC"

    # CLI session marker (survives between invocations)
    session_marker_path: str = ".portal_session.json"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = False

@lru_cache()
def get_settings():
    return Settings()
