"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
"""

import os
import threading
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

from servicegraph.services.descriptor import DEFAULT_TITLE_SUFFIX, ServiceRegistry

logger = structlog.get_logger(__name__)

ENV_PREFIX = "SERVICEGRAPH_"


class ServicesConfig(BaseModel):
    """Service description settings.

    Attributes:
        title_suffix: Suffix stripped from service class names when building titles
    """

    title_suffix: str = Field(
        default=DEFAULT_TITLE_SUFFIX,
        description="Suffix removed from service class names in titles",
    )

    model_config = {"str_strip_whitespace": True}


class ReportConfig(BaseModel):
    """Circular dependency report settings.

    Attributes:
        immediate_marker: Marker printed before direct circular dependencies
        transitive_marker: Marker printed before indirect circular dependencies
        qualified_names: Whether services are named with their module
    """

    immediate_marker: str = Field(
        default="➜",
        description="Marker for immediate circular dependencies",
    )
    transitive_marker: str = Field(
        default="→",
        description="Marker for transitive circular dependencies",
    )
    qualified_names: bool = Field(
        default=True,
        description="Qualify service names with their module",
    )

    @field_validator("immediate_marker", "transitive_marker")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        """Validate that a report marker is not blank.

        Raises:
            ValueError: If the marker is empty or whitespace
        """
        if not v.strip():
            msg = "Report markers must not be blank"
            raise ValueError(msg)
        return v.strip()


class ResolverConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        services: Service description configuration
        report: Circular dependency report configuration
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON rather than console text
    """

    services: ServicesConfig = Field(default_factory=ServicesConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON",
    )

    @field_validator("logging_level", mode="before")
    @classmethod
    def normalize_logging_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ResolverConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated ResolverConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is empty, not valid YAML, or fails validation
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if not config_data:
            msg = "Configuration file is empty"
            raise ValueError(msg)

        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)

        config = cls(**cls._apply_env_overrides(config_data))

        logger.info(
            "configuration_loaded",
            logging_level=config.logging_level,
            title_suffix=config.services.title_suffix,
        )

        return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: SERVICEGRAPH_<SECTION>_<KEY>
        Example: SERVICEGRAPH_REPORT_QUALIFIED_NAMES, SERVICEGRAPH_LOGGING_LEVEL

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("services", "title_suffix"): "SERVICEGRAPH_SERVICES_TITLE_SUFFIX",
            ("report", "immediate_marker"): "SERVICEGRAPH_REPORT_IMMEDIATE_MARKER",
            ("report", "transitive_marker"): "SERVICEGRAPH_REPORT_TRANSITIVE_MARKER",
            ("report", "qualified_names"): "SERVICEGRAPH_REPORT_QUALIFIED_NAMES",
            ("logging_level",): "SERVICEGRAPH_LOGGING_LEVEL",
            ("json_logs",): "SERVICEGRAPH_JSON_LOGS",
        }
        boolean_vars = {"SERVICEGRAPH_REPORT_QUALIFIED_NAMES", "SERVICEGRAPH_JSON_LOGS"}

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            if env_var in boolean_vars:
                value = value.strip().lower() in ("true", "1", "yes")

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def create_registry(self) -> ServiceRegistry:
        """Create a service registry using these settings."""
        return ServiceRegistry(title_suffix=self.services.title_suffix)


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: ResolverConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> ResolverConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                servicegraph.yaml, servicegraph.yml or servicegraph.json in the
                current directory and falls back to defaults when none exists.

        Returns:
            Loaded ResolverConfig instance

        Raises:
            FileNotFoundError: If an explicit config file is not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in ["servicegraph.yaml", "servicegraph.yml", "servicegraph.json"]:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                logger.debug("no_configuration_file_found", message="Using defaults")
                return ResolverConfig(**ResolverConfig._apply_env_overrides({}))

        return ResolverConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> ResolverConfig:
        """Get configuration instance (singleton pattern).

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            ResolverConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> ResolverConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> ResolverConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "ReportConfig",
    "ResolverConfig",
    "ServicesConfig",
    "get_config",
    "load_config",
    "reset_config",
]
