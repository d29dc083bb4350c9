"""Runtime context and trace header helpers"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class LambdaContext(BaseModel):
    """The subset of the runtime context object the utilities read"""

    model_config = ConfigDict(frozen=True)

    function_name: Optional[str] = None
    function_version: Optional[str] = None
    invoked_function_arn: Optional[str] = None
    memory_limit_in_mb: Optional[int] = None
    aws_request_id: Optional[str] = None

    @classmethod
    def from_object(cls, context: Any) -> "LambdaContext":
        """Build from a runtime context object, a dict, or ``None``"""
        if context is None:
            return cls()
        if isinstance(context, LambdaContext):
            return context
        if isinstance(context, dict):
            source = context
        else:
            source = {
                name: getattr(context, name, None)
                for name in cls.model_fields
            }
        return cls(**{k: v for k, v in source.items() if k in cls.model_fields})

    def to_log_fields(self, cold_start: bool) -> Dict[str, Any]:
        """Fields injected into every log line of an invocation"""
        return {
            "function_name": self.function_name,
            "function_memory_size": self.memory_limit_in_mb,
            "function_arn": self.invoked_function_arn,
            "function_request_id": self.aws_request_id,
            "cold_start": cold_start,
        }


def parse_trace_header(header: Optional[str]) -> Dict[str, str]:
    """Split ``Root=1-abc;Parent=def;Sampled=1`` into a dict"""
    if not header:
        return {}

    parts = {}
    for item in header.split(";"):
        key, sep, value = item.strip().partition("=")
        if sep and key:
            parts[key] = value
    return parts
