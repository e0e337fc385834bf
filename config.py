"""
Application settings.

All configuration is read from the environment (or a local .env file) once at
import time and exposed through the module-level ``settings`` object.

Usage:
     from config import settings

     secret = settings.PAYSTACK_SECRET_KEY
"""
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
     # Database
     DATABASE_URL: str = ""
     DB_SERVER: str | None = None
     DB_PORT: str = "1433"
     DB_USER: str | None = None
     DB_PASS: str | None = None
     DB_NAME: str | None = None
     SQL_ECHO: bool = False
     DB_POOL_SIZE: int = 5
     DB_MAX_OVERFLOW: int = 10
     DB_POOL_RECYCLE_SECONDS: int = 1800

     # Auth
     JWT_SECRET: str = ""
     JWT_ALGORITHM: str = "HS256"

     # Paystack
     PAYSTACK_SECRET_KEY: str = ""
     PAYSTACK_BASE_URL: str = "https://api.paystack.co"
     PAYSTACK_TIMEOUT_SECONDS: float = 15.0
     APP_BASE_URL: str = "http://localhost:3000"
     DEFAULT_CURRENCY: str = "NGN"

     # Scheduled jobs
     CRON_SECRET: str = ""

     # Email (Brevo)
     BREVO_API_KEY: str | None = None
     EMAIL_SENDER: str = "noreply@rentdesk.app"
     EMAIL_SENDER_NAME: str = "RentDesk"

     CORS_ORIGINS: str = ""
     LOG_LEVEL: str = "INFO"

     model_config = SettingsConfigDict(
          env_file=".env",
          env_file_encoding="utf-8",
          extra="ignore",
     )

     @property
     def database_url(self) -> str:
          """Explicit DATABASE_URL wins; otherwise build the MS SQL (pymssql) URL."""
          if self.DATABASE_URL:
               return self.DATABASE_URL
          safe_user = quote_plus(self.DB_USER or "")
          safe_pass = quote_plus(self.DB_PASS or "")
          return (
               f"mssql+pymssql://{safe_user}:{safe_pass}@{self.DB_SERVER}:{self.DB_PORT}/{self.DB_NAME}"
          )

     @property
     def cors_origins(self) -> list[str]:
          return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
