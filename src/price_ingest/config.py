"""Configuration management for the price distribution ingest."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class AWSConfig(BaseModel):
    """AWS configuration settings."""

    region: str = Field(default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"))


class DatabaseConfig(BaseModel):
    """Destination database configuration."""

    connection_string: Optional[str] = Field(default_factory=lambda: os.getenv("DB_CONNECTION_STRING"))
    table_name: str = Field(
        default_factory=lambda: os.getenv("PRICE_DISTRIBUTIONS_TABLE", "price_distributions")
    )
    insert_batch_size: int = Field(
        default_factory=lambda: int(os.getenv("DB_INSERT_BATCH_SIZE", "1000")),
        gt=0,
    )


class Config(BaseModel):
    """Main configuration object."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Project settings
    project_name: str = "price-ingest"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "dev"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def load_config() -> Config:
    """Build a fresh configuration from the current environment."""
    return Config()


# Process-wide configuration, read by bootstrap code only
config = load_config()
