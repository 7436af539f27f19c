from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/courier_audit"
    GEMINI_API_KEY: str = ""
    GEMINI_CONTRACT_MODEL: str = "gemini-2.0-flash"
    GEMINI_HEADER_MODEL: str = "gemini-1.5-flash"
    UPLOAD_DIR: str = "/app/.uploads"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
