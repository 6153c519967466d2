"""
Pydantic Logfire integration.

``initialize_logfire`` configures Logfire from ``settings.logfire`` and switches on
the SQLAlchemy, HTTPX and FastAPI instrumentations that are enabled. Until it has
run successfully the ``log_*`` helpers are no-ops, so services can call them
unconditionally.
"""

from typing import Any, Callable, Optional

import logfire
from fastapi import FastAPI

from mortiscope.core.logging_config import get_logger
from mortiscope.server.core.config import LogfireConfig

logger = get_logger(__name__)

_logfire_ready = False


def _instrumentations(config: LogfireConfig, app: Optional[FastAPI]) -> list[tuple[str, Callable[[], Any]]]:
    enabled = []
    if config.trace_sqlalchemy:
        enabled.append(("SQLAlchemy", logfire.instrument_sqlalchemy))
    if config.trace_httpx:
        enabled.append(("HTTPX", logfire.instrument_httpx))
    if config.trace_fastapi and app is not None:
        enabled.append(("FastAPI", lambda: logfire.instrument_fastapi(app=app)))
    return enabled


def initialize_logfire(config: LogfireConfig, app: Optional[FastAPI] = None) -> bool:
    """
    Configure Logfire and instrument the libraries selected in ``config``.

    Returns True when events will be forwarded from now on. A failing
    instrumentation (usually a missing optional extra) is logged and skipped.
    """
    global _logfire_ready

    if not config.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False
    if not config.token:
        logger.warning("LOGFIRE_ENABLED is set but LOGFIRE_TOKEN is empty; monitoring stays off.")
        return False

    logfire.configure(
        token=config.token,
        service_name=config.service_name,
        service_version=config.service_version,
        environment=config.environment,
        sampling=logfire.SamplingOptions(head=config.sample_rate),
    )

    for name, instrument in _instrumentations(config, app):
        try:
            instrument()
        except Exception as e:
            logger.warning(f"Logfire: could not instrument {name}: {e}")
        else:
            logger.info(f"Logfire: {name} instrumentation enabled")

    _logfire_ready = True
    logger.info(f"Logfire monitoring initialized: service={config.service_name}, environment={config.environment}")
    return True


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Record a finished API request with its duration."""
    if _logfire_ready:
        logfire.info(
            "API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms
        )


def log_analysis_event(case_id: str, status: str, **details: Any) -> None:
    """
    Record a status change of a case analysis or recalculation.

    Args:
        case_id: The case being analysed
        status: The new analysis status
        **details: Extra attributes such as the attempt number or the oldest stage
    """
    if _logfire_ready:
        logfire.info("Analysis status changed", case_id=case_id, status=status, **details)


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    if _logfire_ready:
        logfire.error(f"{error_type}: {error_message}", **(context or {}))
