from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for profile metadata updates from the API
    posts_table: str = "posts"
    realtime_channel: str = "community-posts"

    # Board
    feed_limit: int = 50
    max_post_length: int = 2000
    avatar_max_bytes: int = 2 * 1024 * 1024
    device_storage_quota_bytes: Optional[int] = 5 * 1024 * 1024  # Roughly what browsers give localStorage
    profile_saved_delay: float = 1.5

    # Fallback JSON-file backend
    board_enabled: bool = True
    board_data_path: str = "data/posts.json"
    board_max_posts: int = 500
    board_max_payload_bytes: int = 20000
    public_dir: str = "public"

    # App
    app_name: str = "loreboard"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
