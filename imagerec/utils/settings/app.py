from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "1.0.0"
    CORS_ORIGINS: list[str] = [
        "http://localhost:8080",
        "http://localhost:3000",
    ]
    LOG_LEVEL: str = "INFO"

    # Whole multipart body, batch uploads included
    MAX_REQUEST_SIZE: int = 64 * 1024 * 1024  # 64MB

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.is_production:
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
            if "*" in self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must not contain '*' in production")
            if self.DEBUG:
                raise ValueError("DEBUG must be disabled in production")
