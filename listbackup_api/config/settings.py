"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage backend
    store_backend: str = "dynamodb"  # "dynamodb" | "memory"
    aws_region: str = "us-east-1"

    # Table names default to "{table_prefix}-{entity}"; set an override to pin one
    table_prefix: str = "listbackup-main"
    accounts_table: str = ""
    user_accounts_table: str = ""
    teams_table: str = ""
    team_members_table: str = ""
    platforms_table: str = ""
    platform_sources_table: str = ""
    platform_connections_table: str = ""
    files_table: str = ""
    activity_table: str = ""
    billing_plans_table: str = ""
    billing_customers_table: str = ""
    subscriptions_table: str = ""
    usage_table: str = ""
    domains_table: str = ""
    branding_table: str = ""

    # Object storage
    data_bucket: str = "listbackup-main-data"
    branding_bucket: str = "listbackup-main-branding"

    # Stripe
    stripe_secret_key: str = ""
    stripe_api_base: str = "https://api.stripe.com"
    stripe_timeout_seconds: float = 20.0

    # Endpoint behaviour
    download_url_ttl_seconds: int = 3600
    activity_ttl_days: int = 90
    activity_page_size: int = 50
    max_logo_size_kb: int = 500

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def table(self, name: str) -> str:
        """Resolve a table name such as "team-members" to its configured value."""
        override = getattr(self, f"{name.replace('-', '_')}_table", "")
        return override or f"{self.table_prefix}-{name}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
