from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./edumonitor.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    SECRET_KEY: str = "dev-secret-edumonitor"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_MINUTES: int = 60
    # callers presenting this key in X-Internal-Key act as a trusted service
    INTERNAL_API_KEY: str = "dev-internal-key"
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    LOGIN_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_STORAGE_URL: str = "memory://"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
