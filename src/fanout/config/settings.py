"""
Module: settings.py
Description: Handler configuration using pydantic-settings.

Configures all handler settings from environment variables with
validation and defaults. Supports .env files for local development.
Settings are loaded once per process through get_settings().
"""

import re
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fanout.errors import ConfigurationError
from fanout.models.notification import FlowControl, Platform
from fanout.routing.flow_router import PlatformQueues, RoutingConfig

DEFAULT_REGISTER_DEVICE_QUERY = """
INSERT INTO devices (
    deviceid, platform, pushtoken, created, modified,
    preferences_osversioncode, preferences_ap1, preferences_ap2,
    preferences_ap3, preferences_ap4, preferences_mylocation, regions
)
VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (deviceid) DO UPDATE SET
    platform = EXCLUDED.platform,
    pushtoken = EXCLUDED.pushtoken,
    modified = EXCLUDED.modified,
    preferences_osversioncode = EXCLUDED.preferences_osversioncode
"""

DEFAULT_DELETE_DEVICE_QUERY = "DELETE FROM devices WHERE deviceid = %s"

DEFAULT_SELECTED_TOKENS_QUERY = """
SELECT pushtoken FROM devices
WHERE platform = %(platform)s
  AND preferences_ap1 >= %(level)s
  AND regions && %(region_keys)s::text[]
ORDER BY deviceid
LIMIT %(limit)s OFFSET %(offset)s
"""


class Settings(BaseSettings):
    """Handler settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Alert Fan-out Handlers", description="Application name")
    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="eu-central-1", description="AWS region")
    stage: str = Field(default="dev", description="Deployment stage")

    # Flow control
    flow_control: FlowControl = Field(
        default=FlowControl.ALL,
        description="Recipient selection mode: all or selected"
    )

    # SQS settings
    sqs_queue_url_all_fcm: Optional[str] = Field(default=None, description="Queue for FCM chunk batches")
    sqs_queue_url_all_apns: Optional[str] = Field(default=None, description="Queue for APNS chunk batches")
    sqs_queue_url_selected_fcm: Optional[str] = Field(default=None, description="Queue for selected FCM tokens")
    sqs_queue_url_selected_apns: Optional[str] = Field(default=None, description="Queue for selected APNS tokens")
    sqs_queue_url_batch_protocol: Optional[str] = Field(
        default=None,
        description="Queue receiving batch completion notices"
    )

    # Chunk storage settings
    chunk_bucket_name: Optional[str] = Field(default=None, description="S3 bucket holding token chunks")
    chunk_size: int = Field(default=500, ge=1, description="Tokens per chunk")
    chunk_count: int = Field(default=1, ge=1, description="Chunks to seed per provider/platform/severity")
    chunk_token_length: int = Field(default=64, ge=1, le=4096, description="Length of seeded tokens")

    # Selected flow settings
    selected_retrieval_size: int = Field(default=50000, ge=1, description="Tokens fetched per query page")
    selected_tokens_per_message: int = Field(default=500, ge=1, description="Tokens per queue message")
    selected_tokens_query: str = Field(default=DEFAULT_SELECTED_TOKENS_QUERY, description="Token selection SQL")

    # Relational store settings
    rds_secret_id: Optional[str] = Field(default=None, description="Secrets Manager id of the RDS credentials")
    rds_host_readonly: Optional[str] = Field(default=None, description="Read-only host override")
    rds_database: Optional[str] = Field(default=None, description="Database name override")
    rds_pool_max_connections: int = Field(default=2, ge=1, le=20, description="Pool size per process")
    device_register_query: str = Field(default=DEFAULT_REGISTER_DEVICE_QUERY, description="Device upsert SQL")
    device_delete_query: str = Field(default=DEFAULT_DELETE_DEVICE_QUERY, description="Device delete SQL")

    # Batch protocol settings
    batch_table_name: Optional[str] = Field(default=None, description="DynamoDB batch protocol table")

    # Push delivery settings
    push_gateway_url_fcm: Optional[str] = Field(default=None, description="Push gateway endpoint for FCM")
    push_gateway_url_apns: Optional[str] = Field(default=None, description="Push gateway endpoint for APNS")
    push_timeout_seconds: int = Field(default=10, ge=1, le=30, description="Push gateway HTTP timeout")

    # Dispatcher settings
    dispatch_timeout_margin_ms: int = Field(
        default=1000,
        ge=0,
        description="Time kept in reserve before the invocation deadline"
    )

    @field_validator('flow_control', mode='before')
    @classmethod
    def validate_flow_control(cls, v: Any) -> FlowControl:
        """Parse flow control case-insensitively, rejecting unknown modes."""
        try:
            return FlowControl.parse(v)
        except ValueError:
            raise ValueError("flow_control must be one of: all, selected")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator(
        'sqs_queue_url_all_fcm', 'sqs_queue_url_all_apns',
        'sqs_queue_url_selected_fcm', 'sqs_queue_url_selected_apns',
        'sqs_queue_url_batch_protocol', 'push_gateway_url_fcm', 'push_gateway_url_apns'
    )
    @classmethod
    def validate_urls(cls, v: Optional[str]) -> Optional[str]:
        """Endpoints must be HTTP/HTTPS URLs; empty values mean unset."""
        if v is None or not v.strip():
            return None
        if not v.startswith(('http://', 'https://')):
            raise ValueError("endpoint must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('chunk_bucket_name', 'batch_table_name')
    @classmethod
    def validate_resource_names(cls, v: Optional[str]) -> Optional[str]:
        """Bucket and table names: letters, numbers, dots, hyphens, underscores."""
        if v is None or not v.strip():
            return None
        if not re.match(r'^[a-zA-Z0-9._-]+$', v):
            raise ValueError(
                "name must contain only letters, numbers, dots, hyphens, and underscores"
            )
        return v

    def require(self, *names: str) -> None:
        """
        Ensure optional settings needed by a handler are present.

        Raises:
            ConfigurationError: Naming every missing setting
        """
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    def routing_config(self) -> RoutingConfig:
        """Queue endpoints per platform and mode for the FlowRouter."""
        return RoutingConfig(
            flow_control=self.flow_control,
            queues={
                Platform.FCM: PlatformQueues(
                    all=self.sqs_queue_url_all_fcm,
                    selected=self.sqs_queue_url_selected_fcm,
                ),
                Platform.APNS: PlatformQueues(
                    all=self.sqs_queue_url_all_apns,
                    selected=self.sqs_queue_url_selected_apns,
                ),
            },
        )

    def push_gateway_urls(self) -> Dict[Platform, str]:
        """Configured push gateway endpoints keyed by platform."""
        urls = {
            Platform.FCM: self.push_gateway_url_fcm,
            Platform.APNS: self.push_gateway_url_apns,
        }
        return {platform: url for platform, url in urls.items() if url}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process, loaded from the environment on first use."""
    return Settings()
