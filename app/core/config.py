from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "resource-api"
    APP_LOCALE: str = "en"
    HOME_URL: str = "/"

    JWT_SECRET: str = "change_me"
    JWT_TTL_MINUTES: int = 60 * 24 * 30

    CORS_ORIGINS: str = "http://localhost:3000"

    DATABASE_URL: str

    S3_ENDPOINT: str
    S3_ACCESS_KEY: str
    S3_SECRET_KEY: str
    S3_BUCKET: str
    S3_REGION: str = "us-east-1"
    S3_USE_SSL: bool = False
    USER_IMAGE_PREFIX: str = "storage/users"
    USER_IMAGE_TYPES: str = "jpg,jpeg,png"

    PASSWORD_MIN_LENGTH: int = 8
    LIST_DEFAULT_TAKE: int = 25

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def user_image_types_list(self) -> List[str]:
        return [t.strip().lower() for t in self.USER_IMAGE_TYPES.split(",") if t.strip()]

settings = Settings()
