from pydantic import Field
from pydantic_settings import BaseSettings

from schoolfees.core.enums import FeeTypeFilterPolicy


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Which items a scholarship discount is computed over (see calculator.item_filter_for_policy)
    fee_type_filter_policy: FeeTypeFilterPolicy = Field(
        FeeTypeFilterPolicy.ignore, alias="FEE_TYPE_FILTER_POLICY"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
