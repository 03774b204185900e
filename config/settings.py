from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # PulseChain Blockscout-compatible explorer API
    blockscout_base_url: str = "https://api.scan.pulsechain.com/api/v2"
    blockscout_max_rps: float = 5.0
    blockscout_timeout_sec: float = 30.0  # a hung explorer call must not hang the analysis

    # Cluster analysis defaults
    cluster_default_top_holders: int = 50
    cluster_default_days_back: int = 30
    cluster_max_top_holders: int = 200
    cluster_transfer_batch_size: int = 5  # concurrent transfer fetches per batch

    # Dashboard API
    cluster_api_rate_limit: str = "30/minute"
    dashboard_host: str = "0.0.0.0"
    dashboard_port: int = 8080
    dashboard_debug: bool = False


settings = Settings()
