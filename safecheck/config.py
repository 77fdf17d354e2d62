from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./safecheck.db"
    anthropic_api_key: str = ""

    analysis_model: str = "claude-sonnet-4-5-20250929"
    analysis_max_tokens: int = 1500

    # Anthropic API timeout settings (seconds)
    anthropic_timeout: int = 60
    anthropic_connect_timeout: int = 10

    # Uploaded label photos
    upload_dir: str = "uploads/products"
    image_max_dimension: int = 800

    # Oldest history entries beyond this are dropped
    history_limit: int = 50

    class Config:
        env_file = ".env"


settings = Settings()
