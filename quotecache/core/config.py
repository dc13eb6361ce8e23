from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QUOTECACHE_", env_file=".env", extra="ignore")
    database_url: str = "sqlite+aiosqlite:///./data/quotecache.db"
    # Upstream yfapi.net: the key comes from SSM first, yf_api_key is the local fallback
    yf_api_base_url: str = "https://yfapi.net"
    yf_api_key: str = ""
    yf_api_key_parameter: str = "/WebApiProject/YfApi/ApiKey"
    use_parameter_store: bool = False
    aws_region: str = "us-east-1"
    upstream_timeout_seconds: float = 10.0
    upstream_rate_per_minute: int = 100
    # Cache lifetimes; quotes must stay shorter-lived than trending lists
    quote_ttl_minutes: float = 15
    trending_ttl_minutes: float = 30
    max_batch_symbols: int = 10
    trending_limit: int = 50
    log_level: str = "INFO"
    log_json: bool = False
    cors_origins: list[str] = ["*"]

settings = Settings()
