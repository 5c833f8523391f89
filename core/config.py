from typing import Optional

from pydantic.v1 import BaseSettings


class Settings(BaseSettings):

    DATABASE_URL: str
    SESSION_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080
    SESSION_COOKIE_NAME: str = "adhub_session"
    COOKIE_SECURE: bool = True
    SITE_URL: str = "http://localhost:3000"

    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    CLERK_WEBHOOK_SECRET: Optional[str] = None

    AWS_ACCESS_KEY_ID: str
    AWS_SECRET_ACCESS_KEY: str
    AWS_S3_BUCKET_NAME: str = "profile-photos"
    AWS_S3_ENDPOINT_URL: str
    AWS_S3_REGION: str = "us-east-1"
    AWS_S3_SECURE: bool = False
    MAX_PHOTO_BYTES: int = 5 * 1024 * 1024

    ADMIN_PASSWORD: Optional[str] = None
    DEBUG: bool = False

    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    MAIL_FROM: str = "AdHub <no-reply@adhub.app>"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def s3_base_url(self) -> str:
        return self.AWS_S3_ENDPOINT_URL.rstrip("/") + "/" + self.AWS_S3_BUCKET_NAME


# Single settings object imported everywhere
settings = Settings()
