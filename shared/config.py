"""Shared configuration for all services."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_queue_name: str = "pipeline_tasks"
    redis_progress_channel: str = "pipeline_updates"

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "editorial_pipeline"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    ws_heartbeat_interval: int = 30

    # Consumer Configuration
    consumer_poll_interval: float = 1.0

    # Text Generation
    llm_provider: str = "gemini"  # gemini | openai
    llm_model: str = "gemini-1.5-flash-latest"
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    title_timeout: float = 20.0
    content_timeout: float = 90.0
    title_retry_delay: float = 2.0
    content_retry_delay: float = 3.0
    generation_max_attempts: int = 3

    # Content Assembly
    min_context_chars: int = 100
    max_context_chars: int = 8000
    page_fetch_timeout: int = 10
    page_fetch_max_redirects: int = 5

    # Title Validation
    title_min_length: int = 10
    title_similarity_threshold: float = 0.4

    # Image Processing
    image_download_timeout: int = 15
    image_max_redirects: int = 5
    image_max_width: int = 1200
    image_max_height: int = 630
    image_webp_quality: int = 80
    image_key_prefix: str = "fanskor"

    # Object Storage
    storage_backend: str = "s3"  # s3 | local
    s3_endpoint_url: Optional[str] = None
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[str] = None
    s3_bucket_name: str = "media"
    s3_public_url: str = "https://media.example.com"
    local_upload_dir: str = "public/uploads"
    local_upload_url_prefix: str = "/uploads"

    # Sports Data Provider
    football_api_host: str = "https://v3.football.api-sports.io"
    football_api_key: Optional[str] = None
    football_api_timeout: int = 20

    # Publishing
    default_author: str = "AI Auto-Generator"
    stale_processing_minutes: int = 30
    reconcile_on_startup: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
