from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "E-Waste Pickup API"
    jwt_secret: str = "dev"
    jwt_alg: str = "HS256"
    access_ttl_min: int = 24 * 60
    use_mongo: bool = False
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "ewaste"
    log_level: str = "INFO"
    # exposes exception text in 500 responses; never enable in production
    debug: bool = False
    cors_origins: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
