# ============================================================================
# HEALTH MONITOR SETTINGS
# ============================================================================
# EPOCH: 1 - HEALTH MONITORING
# STATUS: Core - Declarative configuration
# PURPOSE: Pydantic models for the YAML config file and env overrides
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Monitor Settings

Loaded from a YAML file (HEALTH_CONFIG_PATH) and then overridden from the
environment. Connection strings and other secrets stay out of the file:
string probe options may reference ${VAR} or ${VAR:-default}.

Example:
    service_name: s3-health
    probes:
      - name: process
        kind: process
        tags: [liveness]
      - name: sqlserver
        factory: acme_probes.sql:sqlserver_probe
        tags: [readiness]
        timeout_seconds: 5
        options:
          connection_string: ${SQLSERVER_CONNECTION_STRING}
    routes:
      - path: /healthz
        reporter: ui
    dashboard:
      evaluation_interval_seconds: 300
      endpoints:
        - name: S3HealthEndpoint
          url: https://localhost:44376/healthz
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from core.config.defaults import DashboardDefaults, StatusCodeDefaults, TimeoutDefaults
from health.errors import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*?))?\}")


def expand_env(value: Any, environ: Optional[Dict[str, str]] = None) -> Any:
    """
    Expand ${VAR} and ${VAR:-default} references, recursively.

    Raises:
        ConfigurationError: If a referenced variable is unset and has no default
    """
    environ = os.environ if environ is None else environ

    if isinstance(value, str):
        def replace(match: "re.Match") -> str:
            name, default = match.group(1), match.group(2)
            if name in environ:
                return environ[name]
            if default is not None:
                return default
            raise ConfigurationError(f"Environment variable not set: {name}")
        return _ENV_PATTERN.sub(replace, value)
    if isinstance(value, dict):
        return {k: expand_env(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env(v, environ) for v in value]
    return value


# ============================================================================
# MODELS
# ============================================================================

class StatusCodeConfig(BaseModel):
    """HTTP status code returned for each overall status."""
    healthy: int = Field(default=StatusCodeDefaults.healthy, ge=100, le=599)
    degraded: int = Field(default=StatusCodeDefaults.degraded, ge=100, le=599)
    unhealthy: int = Field(default=StatusCodeDefaults.unhealthy, ge=100, le=599)


class ProbeConfig(BaseModel):
    """
    One configured probe.

    Either `kind` (a built-in probe kind) or `factory` (an import path
    "package.module:callable") must be given.
    """
    name: str = Field(..., min_length=1, max_length=128)
    kind: Optional[str] = None
    factory: Optional[str] = Field(default=None, pattern=r"^[\w.]+:[\w.]+$")
    tags: List[str] = Field(default_factory=list)
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    options: Dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True

    @field_validator("tags", mode="before")
    @classmethod
    def handle_string_input(cls, v):
        """Allow single string as shorthand for single-item list."""
        if isinstance(v, str):
            return [v]
        return v

    @model_validator(mode="after")
    def check_source(self) -> "ProbeConfig":
        if bool(self.kind) == bool(self.factory):
            raise ValueError(f"Probe {self.name}: set exactly one of 'kind' or 'factory'")
        return self


class RouteConfig(BaseModel):
    """A health route and the probes it evaluates."""
    path: str = Field(..., pattern=r"^/")
    tags: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)
    exclude_tags: List[str] = Field(default_factory=list)
    match_all_tags: bool = False
    reporter: Literal["json", "ui", "html"] = "json"
    status_codes: Optional[StatusCodeConfig] = None

    @field_validator("tags", "names", "exclude_tags", mode="before")
    @classmethod
    def handle_string_input(cls, v):
        if isinstance(v, str):
            return [v]
        return v


class DashboardEndpointConfig(BaseModel):
    """
    An endpoint whose history the dashboard keeps.

    With `url` the report is pulled over HTTP; without it the local
    registry is evaluated, filtered by tags/names.
    """
    name: str = Field(..., min_length=1)
    url: Optional[str] = Field(default=None, pattern=r"^https?://")
    tags: List[str] = Field(default_factory=list)
    names: List[str] = Field(default_factory=list)


class DashboardConfig(BaseModel):
    """Dashboard poller and UI settings."""
    enabled: bool = True
    evaluation_interval_seconds: float = Field(
        default=DashboardDefaults.evaluation_interval_seconds, gt=0
    )
    history_size: int = Field(default=DashboardDefaults.history_size, ge=1, le=10000)
    poll_timeout_seconds: float = Field(default=DashboardDefaults.poll_timeout_seconds, gt=0)
    verify_tls: bool = True
    ui_path: str = Field(default=DashboardDefaults.ui_path, pattern=r"^/")
    api_path: str = Field(default=DashboardDefaults.api_path, pattern=r"^/")
    endpoints: List[DashboardEndpointConfig] = Field(default_factory=list)

    @field_validator("endpoints")
    @classmethod
    def unique_names(cls, v: List[DashboardEndpointConfig]):
        names = [e.name for e in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate dashboard endpoint names: {duplicates}")
        return v


def _default_probes() -> List[ProbeConfig]:
    return [ProbeConfig(name="process", kind="process", tags=["liveness"])]


def _default_routes() -> List[RouteConfig]:
    return [
        RouteConfig(path="/healthz", reporter="ui"),
        RouteConfig(path="/livez", tags=["liveness"]),
        RouteConfig(path="/readyz", tags=["readiness"]),
    ]


class HealthSettings(BaseModel):
    """Top-level settings for the health monitor."""
    service_name: str = "health-monitor"
    log_level: str = "INFO"
    log_format: Literal["human", "json"] = "human"
    overall_timeout_seconds: float = Field(
        default=TimeoutDefaults.overall_timeout_seconds, gt=0
    )
    default_probe_timeout_seconds: float = Field(
        default=TimeoutDefaults.probe_timeout_seconds, gt=0
    )
    max_parallel: Optional[int] = Field(default=None, ge=1)
    thread_pool_size: int = Field(default=TimeoutDefaults.thread_pool_size, ge=1)
    status_codes: StatusCodeConfig = Field(default_factory=StatusCodeConfig)
    probes: List[ProbeConfig] = Field(default_factory=_default_probes)
    routes: List[RouteConfig] = Field(default_factory=_default_routes)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("routes")
    @classmethod
    def unique_paths(cls, v: List[RouteConfig]):
        paths = [r.path for r in v]
        duplicates = sorted({p for p in paths if paths.count(p) > 1})
        if duplicates:
            raise ValueError(f"Duplicate route paths: {duplicates}")
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HealthSettings":
        """Validate a raw mapping, wrapping pydantic errors."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid health configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "HealthSettings":
        """
        Load settings from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is not None and not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        logger.info(f"Loaded health configuration from {path}")
        return cls.from_dict(data or {})

    def with_env_overrides(self, environ: Optional[Dict[str, str]] = None) -> "HealthSettings":
        """
        Apply environment overrides on top of these settings.

        Recognized variables:
            SERVICE_NAME, LOG_LEVEL, LOG_FORMAT,
            HEALTH_OVERALL_TIMEOUT, HEALTH_PROBE_TIMEOUT, HEALTH_MAX_PARALLEL,
            HEALTH_THREAD_POOL_SIZE,
            HEALTH_HEALTHY_STATUS_CODE, HEALTH_DEGRADED_STATUS_CODE,
            HEALTH_UNHEALTHY_STATUS_CODE,
            HEALTH_EVALUATION_INTERVAL, HEALTH_HISTORY_SIZE, HEALTH_POLL_TIMEOUT,
            HEALTH_DASHBOARD_ENDPOINTS ("name=url,name=url")
        """
        env = os.environ if environ is None else environ
        data = self.model_dump()

        if env.get("SERVICE_NAME"):
            data["service_name"] = env["SERVICE_NAME"]
        if env.get("LOG_LEVEL"):
            data["log_level"] = env["LOG_LEVEL"]
        if env.get("LOG_FORMAT"):
            data["log_format"] = env["LOG_FORMAT"].lower()
        if env.get("HEALTH_OVERALL_TIMEOUT"):
            data["overall_timeout_seconds"] = env["HEALTH_OVERALL_TIMEOUT"]
        if env.get("HEALTH_PROBE_TIMEOUT"):
            data["default_probe_timeout_seconds"] = env["HEALTH_PROBE_TIMEOUT"]
        if env.get("HEALTH_MAX_PARALLEL"):
            data["max_parallel"] = env["HEALTH_MAX_PARALLEL"]
        if env.get("HEALTH_THREAD_POOL_SIZE"):
            data["thread_pool_size"] = env["HEALTH_THREAD_POOL_SIZE"]
        if env.get("HEALTH_HEALTHY_STATUS_CODE"):
            data["status_codes"]["healthy"] = env["HEALTH_HEALTHY_STATUS_CODE"]
        if env.get("HEALTH_UNHEALTHY_STATUS_CODE"):
            data["status_codes"]["unhealthy"] = env["HEALTH_UNHEALTHY_STATUS_CODE"]
        if env.get("HEALTH_DEGRADED_STATUS_CODE"):
            data["status_codes"]["degraded"] = env["HEALTH_DEGRADED_STATUS_CODE"]
        if env.get("HEALTH_EVALUATION_INTERVAL"):
            data["dashboard"]["evaluation_interval_seconds"] = env["HEALTH_EVALUATION_INTERVAL"]
        if env.get("HEALTH_HISTORY_SIZE"):
            data["dashboard"]["history_size"] = env["HEALTH_HISTORY_SIZE"]
        if env.get("HEALTH_POLL_TIMEOUT"):
            data["dashboard"]["poll_timeout_seconds"] = env["HEALTH_POLL_TIMEOUT"]
        if env.get("HEALTH_DASHBOARD_ENDPOINTS"):
            data["dashboard"]["endpoints"] = parse_endpoint_list(env["HEALTH_DASHBOARD_ENDPOINTS"])

        return self.from_dict(data)

    @classmethod
    def load(cls, environ: Optional[Dict[str, str]] = None) -> "HealthSettings":
        """
        Load settings the way the application does at startup.

        HEALTH_CONFIG_PATH selects the YAML file; without it the built-in
        defaults are used. Environment overrides are applied last.
        """
        env = os.environ if environ is None else environ
        config_path = env.get("HEALTH_CONFIG_PATH")
        settings = cls.from_yaml(config_path) if config_path else cls()
        return settings.with_env_overrides(env)


def parse_endpoint_list(value: str) -> List[Dict[str, str]]:
    """
    Parse "name=url,name=url" into endpoint dicts.

    A bare URL is named after its position ("endpoint-1").
    """
    endpoints = []
    for index, item in enumerate(p.strip() for p in value.split(",")):
        if not item:
            continue
        if item.startswith(("http://", "https://")):
            name, url = f"endpoint-{index + 1}", item
        else:
            name, _, url = item.partition("=")
        endpoints.append({"name": name.strip(), "url": url.strip()})
    return endpoints


__all__ = [
    "StatusCodeConfig",
    "ProbeConfig",
    "RouteConfig",
    "DashboardEndpointConfig",
    "DashboardConfig",
    "HealthSettings",
    "expand_env",
    "parse_endpoint_list",
]
