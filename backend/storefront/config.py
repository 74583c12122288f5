from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    PAYMENT_MOCK_DELAY_MS: int = 2000

    DEFAULT_PAGE_SIZE: int = 8
    # upper bound for the in-memory category sort path
    CATEGORY_SORT_MAX_ITEMS: int = 5000
    # "collection:filter_field:order_field" entries the store may serve directly
    COMPOSITE_INDEXES: List[str] = ["categories:parent_category_id:name"]

    CART_MERGE_DUPLICATE_LINES: bool = False
    BATCH_MAX_WORKERS: int = 8
    DEFAULT_TIMEZONE: str = "UTC"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
