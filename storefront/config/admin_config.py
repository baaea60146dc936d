from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    SERVICE_NAME: str = "storefront"
    ENABLE_ADMIN: bool = True
    ADMIN_SECRET: Optional[str] = None   # value expected in X-Admin-Secret header

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
