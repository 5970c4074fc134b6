"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"
    site_name: str = "NameDrop.cv"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "https://namedrop.cv",
        "https://www.namedrop.cv",
    ]

    # Tenant routing
    main_domain: str = "namedrop.cv"
    # Hosts ending in one of these are dev/preview deployments, never tenants
    dev_host_suffixes: list[str] = [".replit.dev", ".repl.co", ".replit.app"]

    # WordPress blog source
    wordpress_base_url: str = "https://wrelikbrands.com/wp-json/wp/v2"
    wordpress_username: str = ""
    wordpress_app_password: str = ""
    blog_default_author: str = "Wrelik Brands"
    content_cache_ttl: float = 300  # seconds
    wordpress_max_retries: int = 3
    wordpress_backoff_base: float = 1.0  # seconds, doubled per retry
    wordpress_request_timeout: float = 15.0  # per attempt
    wordpress_deadline: float = 20.0  # whole fetch, including backoff waits

    # Profile store: "memory" for local dev, "blob" for Azure
    profile_store_backend: str = "memory"
    azure_storage_account: str = "namedropstorage"
    azure_profile_container: str = "profiles"
    managed_identity_client_id: str = ""

    # OpenAI-compatible LLM for content optimization
    openai_base_url: str = ""  # empty = api.openai.com
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
