from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "insurance_ops"
    db_username: str = "insurance_ops"
    db_password: str = "secret"
    db_sslmode: str = "prefer"
    db_pool_max_size: int = 10

    catalog_table: str = "qq.contact_files"
    policies_table: str = "qq.policies"

    catalyst_base_url: str = "https://api.qqcatalyst.com"
    catalyst_token_url: str = "https://login.qqcatalyst.com/oauth/token"
    catalyst_client_id: str = ""
    catalyst_client_secret: str = ""
    catalyst_refresh_token: str = ""
    catalyst_page_size: int = 100
    catalyst_timeout_seconds: int = 60
    catalyst_max_attempts: int = 5
    catalyst_retry_base_delay_seconds: float = 0.6
    catalyst_rate_limit_cooldown_seconds: float = 65.0
    catalyst_rate_limit_max_waits: int = 5
    catalyst_token_refresh_margin_seconds: int = 60

    aws_region: str = "us-east-1"
    aws_s3_bucket: str = ""

    lambda_function_name: str = "carrier-application-to-json-lambda"
    lambda_aws_access_key_id: str = ""
    lambda_aws_secret_access_key: str = ""
    lambda_timeout_seconds: int = 120

    sync_recency_days: int = 365
    scratch_root: str = "./downloads"

    pdf_engine: str = "pdfplumber"
    detection_max_pages: int | None = None
