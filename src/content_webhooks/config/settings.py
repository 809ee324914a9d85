"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures the webhook dispatch engine from environment variables with
validation and defaults. Supports .env files for local development.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Content Webhooks", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="us-east-1", description="AWS region")
    stage: str = Field(default="dev", description="Deployment stage")

    # Subscription storage
    subscription_backend: str = Field(
        default="memory",
        description="Subscription store backend: 'memory' or 'dynamodb'"
    )
    subscriptions_table_name: str = Field(
        default="content-webhooks-subscriptions",
        description="Name of the DynamoDB subscriptions table"
    )

    # Queue settings
    queue_backend: str = Field(
        default="memory",
        description="Delivery queue backend: 'memory' or 'sqs'"
    )
    delivery_queue_url: Optional[str] = Field(
        default=None,
        description="URL of the SQS delivery queue"
    )

    # Delivery settings
    webhook_timeout: int = Field(
        default=10,
        ge=1,
        le=30,
        description="HTTP timeout in seconds for delivery attempts"
    )
    webhook_max_attempts: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of re-enqueues allowed after a failed attempt"
    )
    webhook_backoff_base_seconds: int = Field(
        default=60,
        ge=1,
        description="Base delay; retry n waits base * 2^n seconds"
    )
    webhook_log_capacity: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Number of delivery attempts kept in the delivery log"
    )
    webhook_user_agent: str = Field(
        default="Content-Webhooks/1.0",
        description="User-Agent header sent with every delivery"
    )
    webhook_fail_fast_on_client_error: bool = Field(
        default=False,
        description="Drop jobs on non-retryable 4xx responses instead of retrying"
    )
    worker_concurrency: int = Field(
        default=2,
        ge=1,
        le=32,
        description="Number of delivery worker threads"
    )

    # Observability
    metrics_enabled: bool = Field(
        default=False,
        description="Publish delivery metrics to CloudWatch"
    )
    metrics_namespace: str = Field(
        default="ContentWebhooks",
        description="CloudWatch metrics namespace"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator('queue_backend', 'subscription_backend')
    @classmethod
    def validate_backend(cls, v: str, info) -> str:
        """Validate backend selection."""
        allowed = {
            'queue_backend': ('memory', 'sqs'),
            'subscription_backend': ('memory', 'dynamodb'),
        }[info.field_name]
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"{info.field_name} must be one of: {', '.join(allowed)}")
        return v

    @field_validator('subscriptions_table_name')
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Validate DynamoDB table name."""
        import re
        if not v or not re.match(r'^[a-zA-Z0-9_.-]+$', v):
            raise ValueError(
                "Table name must contain only letters, numbers, dots, hyphens, and underscores"
            )
        return v

    @model_validator(mode='after')
    def validate_queue_url(self) -> 'Settings':
        """SQS backend needs a queue URL."""
        if self.queue_backend == 'sqs' and not self.delivery_queue_url:
            raise ValueError("delivery_queue_url is required when queue_backend is 'sqs'")
        return self


# Global settings instance
settings = Settings()
