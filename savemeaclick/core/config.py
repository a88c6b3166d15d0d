from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout_seconds: float = 90.0
    openai_max_retries: int = 3
    openai_stream: bool = False

    # Article extraction
    article_max_chars: int = 12000  # keep prompts well under the model context window
    article_fetch_timeout_seconds: float = 20.0

    # App
    app_env: str = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    # Externally reachable base URL of this service (used by the bots)
    api_url: str = "http://localhost:3000"

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://savemeaclick.app,https://www.savemeaclick.app"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable

    # Reddit bot: all four credentials required to enable
    reddit_client_id: str = ""
    reddit_client_secret: str = ""
    reddit_username: str = ""
    reddit_password: str = ""
    reddit_user_agent: str = "SaveMeAClickBot/1.0.0"

    # Instagram bot: token + app id required to enable
    instagram_page_access_token: str = ""
    instagram_app_id: str = ""
    instagram_api_version: str = "v18.0"
    instagram_base_url: str = "https://graph.facebook.com"

    # Bot polling
    bot_poll_interval_seconds: float = 60.0
    bot_dedup_max_items: int = 5000
    bot_dedup_ttl_seconds: float = 7 * 24 * 3600

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def reddit_enabled(self) -> bool:
        return all(
            (self.reddit_client_id, self.reddit_client_secret, self.reddit_username, self.reddit_password)
        )

    @property
    def instagram_enabled(self) -> bool:
        return bool(self.instagram_page_access_token and self.instagram_app_id)


settings = Settings()


def validate_settings() -> None:
    """Validate critical settings. Called on startup."""
    errors: list[str] = []

    if not settings.openai_api_key:
        errors.append("OPENAI_API_KEY must be set")

    if settings.openai_max_retries < 0:
        errors.append("OPENAI_MAX_RETRIES must be >= 0")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
