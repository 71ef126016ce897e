"""Logfire observability for the Library Lending MCP Server."""

import functools
import logging
import os
from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import logfire
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ObservabilityConfig(BaseModel):
    """Configuration for Logfire observability."""

    token: str = Field(default_factory=lambda: os.getenv("LOGFIRE_TOKEN", ""))
    project_name: str = "library-lending-mcp"
    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    enabled: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_ENABLED", "true").lower() == "true"
    )
    console_output: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_CONSOLE", "false").lower() == "true"
    )
    send_to_logfire: bool = Field(
        default_factory=lambda: os.getenv("LOGFIRE_SEND", "false").lower() == "true"
    )


_config: ObservabilityConfig | None = None


def initialize_observability(config: ObservabilityConfig | None = None) -> None:
    """Configure Logfire from ``ObservabilityConfig``."""
    global _config  # noqa: PLW0603
    _config = config or ObservabilityConfig()

    if not _config.enabled:
        logger.debug("Observability disabled via configuration")
        return

    logfire.configure(
        token=_config.token or None,
        service_name=_config.project_name,
        environment=_config.environment,
        send_to_logfire=_config.send_to_logfire,
        console=None if _config.console_output else False,
    )

    if _config.environment == "production":
        logfire.instrument_system_metrics()


def get_observability_config() -> ObservabilityConfig:
    """Get current observability configuration."""
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ObservabilityConfig()
    return _config


@contextmanager
def trace_operation(component: str, operation: str, **attributes: Any) -> Generator[Any, None, None]:
    """
    Span around one core operation.

    The yielded span accepts ``set_attribute``; callers record the outcome
    code there. Exceptions are tagged on the span and re-raised.
    """
    with logfire.span(
        f"{component}.{operation}",
        component=component,
        operation=operation,
        **attributes,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("error", str(e))
            raise


def trace_tool(tool_name: str):
    """Decorator to trace MCP tool execution."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(arguments: dict[str, Any], *args, **kwargs):
            with logfire.span(
                f"tool.execution.{tool_name}",
                tool_name=tool_name,
            ) as span:
                start_time = datetime.now()
                _add_attributes(span, "input", arguments)

                try:
                    result = await func(arguments, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("tool.success", False)
                    span.set_attribute("tool.error", str(e))
                    raise

                span.set_attribute("tool.success", not result.get("isError", False))
                span.set_attribute(
                    "tool.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                )
                if "error" in result:
                    span.set_attribute("tool.error_code", result["error"]["code"])
                    span.set_attribute("tool.error_status", result["error"]["status"])
                return result

        return wrapper

    return decorator


def _add_attributes(span, prefix: str, data: dict):
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)
