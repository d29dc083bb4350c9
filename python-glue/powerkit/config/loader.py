"""Environment-driven settings for the logger, metrics and tracer"""

from typing import Optional, Type, TypeVar

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVICE_NAME = "service_undefined"

S = TypeVar("S", bound=BaseSettings)


class ServiceSettings(BaseSettings):
    """Settings shared by every utility"""

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME,
        validation_alias="POWERTOOLS_SERVICE_NAME",
    )
    dev: bool = Field(default=False, validation_alias="POWERTOOLS_DEV")


class LoggerSettings(ServiceSettings):
    """Logger settings"""

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("POWERTOOLS_LOG_LEVEL", "LOG_LEVEL"),
    )
    sample_rate: float = Field(
        default=0.0,
        validation_alias="POWERTOOLS_LOGGER_SAMPLE_RATE",
    )
    log_event: bool = Field(
        default=False,
        validation_alias="POWERTOOLS_LOGGER_LOG_EVENT",
    )


class MetricsSettings(ServiceSettings):
    """Metrics settings"""

    namespace: Optional[str] = Field(
        default=None,
        validation_alias="POWERTOOLS_METRICS_NAMESPACE",
    )
    disabled: bool = Field(
        default=False,
        validation_alias="POWERTOOLS_METRICS_DISABLED",
    )


class TracerSettings(ServiceSettings):
    """Tracer settings"""

    enabled: Optional[bool] = Field(
        default=None,
        validation_alias="POWERTOOLS_TRACE_ENABLED",
    )
    capture_response: bool = Field(
        default=True,
        validation_alias="POWERTOOLS_TRACER_CAPTURE_RESPONSE",
    )
    capture_error: bool = Field(
        default=True,
        validation_alias="POWERTOOLS_TRACER_CAPTURE_ERROR",
    )
    exporter_endpoint: Optional[str] = Field(
        default=None,
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
    )


class RuntimeSettings(BaseSettings):
    """Values the serverless runtime sets for the execution environment"""

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    function_name: Optional[str] = Field(
        default=None,
        validation_alias="AWS_LAMBDA_FUNCTION_NAME",
    )
    execution_env: Optional[str] = Field(
        default=None,
        validation_alias="AWS_EXECUTION_ENV",
    )
    sam_local: bool = Field(default=False, validation_alias="AWS_SAM_LOCAL")
    trace_header: Optional[str] = Field(
        default=None,
        validation_alias="_X_AMZN_TRACE_ID",
    )

    @property
    def is_lambda_environment(self) -> bool:
        return self.execution_env is not None


def load_settings(settings_cls: Type[S] = ServiceSettings) -> S:
    """Load settings from the current environment.

    A fresh object is built on every call so that environment changes made
    between invocations (or by tests) are always observed.
    """
    return settings_cls()
