from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    port: int = Field(default=8207, validation_alias="PORT")

    # AWS
    aws_region: str = Field(default="eu-west-2", validation_alias="AWS_REGION")

    # Cognito
    cognito_user_pool_id: str | None = Field(
        default=None, validation_alias="COGNITO_USER_POOL_ID"
    )
    cognito_consultation_group: str = Field(
        default="dsp-beta-consultation-group", validation_alias="COGNITO_CONSULTATION_GROUP"
    )
    cognito_beta_participant_group: str = Field(
        default="beta-participant-group", validation_alias="COGNITO_BETA_PARTICIPANT_GROUP"
    )

    # Messaging (SQS + SNS)
    request_queue_url: str | None = Field(default=None, validation_alias="REQUEST_QUEUE_URL")
    contact_details_updated_queue_url: str | None = Field(
        default=None, validation_alias="CONTACT_DETAILS_UPDATED_QUEUE_URL"
    )
    contact_details_poll_wait_seconds: int = Field(
        default=10, validation_alias="CONTACT_DETAILS_POLL_WAIT_SECONDS"
    )
    contact_details_poll_max_messages: int = Field(
        default=5, validation_alias="CONTACT_DETAILS_POLL_MAX_MESSAGES"
    )
    user_account_update_topic_arn: str | None = Field(
        default=None, validation_alias="USER_ACCOUNT_UPDATE_TOPIC_ARN"
    )
    profile_move_topic_arn: str | None = Field(
        default=None, validation_alias="PROFILE_MOVE_TOPIC_ARN"
    )

    # Cache (Redis)
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    cache_key_prefix: str = Field(default="UserManagement", validation_alias="CACHE_KEY_PREFIX")
    cache_time_to_live_seconds: int = Field(
        default=3600, validation_alias="CACHE_TIME_TO_LIVE_SECONDS"
    )

    # Metrics (CloudWatch). Unset namespace keeps counts in-process only.
    metrics_namespace: str | None = Field(default=None, validation_alias="METRICS_NAMESPACE")

    # Profile service (token -> user profile/authorities)
    profile_service_url: str | None = Field(default=None, validation_alias="PROFILE_SERVICE_URL")
    profile_client_timeout_seconds: int = Field(
        default=10, validation_alias="PROFILE_CLIENT_TIMEOUT_SECONDS"
    )

    # Observability (OpenTelemetry)
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_service_name: str | None = Field(
        default="tis-trainee-user-management", validation_alias="OTEL_SERVICE_NAME"
    )
    # OTLP/HTTP endpoint (e.g. http://adot-collector:4318/v1/traces)
    otel_exporter_otlp_endpoint: str | None = Field(
        default=None, validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Development/staging may run with partial config for local work.
        """
        if not self.is_production:
            return

        missing: list[str] = []

        if not self.cognito_user_pool_id:
            missing.append("COGNITO_USER_POOL_ID")
        if not self.request_queue_url:
            missing.append("REQUEST_QUEUE_URL")
        if not self.user_account_update_topic_arn:
            missing.append("USER_ACCOUNT_UPDATE_TOPIC_ARN")
        if not self.profile_service_url:
            missing.append("PROFILE_SERVICE_URL")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "aws": {
                "aws_region": self.aws_region,
                "metrics_namespace": self.metrics_namespace,
            },
            "cognito": {
                "cognito_user_pool_id": self.cognito_user_pool_id,
                "cognito_consultation_group": self.cognito_consultation_group,
                "cognito_beta_participant_group": self.cognito_beta_participant_group,
            },
            "messaging": {
                "request_queue_url": self.request_queue_url,
                "contact_details_updated_queue_url": self.contact_details_updated_queue_url,
                "user_account_update_topic_arn": self.user_account_update_topic_arn,
                "profile_move_topic_arn": self.profile_move_topic_arn,
            },
            "cache": {
                # The URL may embed a password.
                "redis_url_configured": _has(self.redis_url),
                "cache_key_prefix": self.cache_key_prefix,
                "cache_time_to_live_seconds": self.cache_time_to_live_seconds,
            },
            "auth": {
                "profile_service_url": self.profile_service_url,
                "profile_client_timeout_seconds": self.profile_client_timeout_seconds,
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s


settings = get_settings()
