"""Expression engine configuration.

Configuration file location priority:
1. Explicit path passed to ExpressionConfigLoader
2. WORKFLOW_EXPRESSIONS_CONFIG environment variable
3. Standard location: ~/.workflows/expressions.yml
4. Built-in defaults (if no config file found)

Example config file:
```yaml
version: "1.0"

parse_json_results: false
max_template_length: 100000

helper_families:
  - data
  - array
  - logic
  - string
  - math
  - json
  - date

env_allowlist:
  - API_URL
  - DEPLOY_ENV
```
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "WORKFLOW_EXPRESSIONS_CONFIG"
DEFAULT_HELPER_FAMILIES = ["data", "array", "logic", "string", "math", "json", "date"]


class ExpressionConfig(BaseModel):
    """Root expression engine configuration."""

    version: str = Field(
        default="1.0",
        description="Configuration schema version",
    )
    parse_json_results: bool = Field(
        default=False,
        description=(
            "Parse rendered multi-expression results that look like a JSON "
            "object or array back into values"
        ),
    )
    max_template_length: int = Field(
        default=100_000,
        ge=1,
        le=10_000_000,
        description="Longest template accepted by the evaluator (characters)",
    )
    helper_families: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HELPER_FAMILIES),
        description="Built-in helper families to register",
    )
    env_allowlist: list[str] = Field(
        default_factory=list,
        description="Environment variable names exposed to templates as $env",
    )

    @field_validator("helper_families")
    @classmethod
    def validate_helper_families(cls, v: list[str]) -> list[str]:
        """Reject unknown family names and drop duplicates."""
        unknown = [name for name in v if name not in DEFAULT_HELPER_FAMILIES]
        if unknown:
            raise ValueError(
                f"Unknown helper families: {', '.join(unknown)}. "
                f"Available families: {', '.join(DEFAULT_HELPER_FAMILIES)}"
            )
        return list(dict.fromkeys(v))


class ExpressionConfigLoader:
    """Loader for expression engine configuration from YAML file.

    Usage:
        ```python
        loader = ExpressionConfigLoader()
        config = loader.load_config()
        registry = create_default_registry(config.helper_families)
        ```

    Thread Safety:
        load_config() caches its result; load once during app startup.
    """

    def __init__(self, config_path: str | Path | None = None):
        """Initialize config loader with optional explicit path.

        Args:
            config_path: Explicit path to config file (optional).
                If not provided, uses environment variable or standard location.
        """
        self._config: ExpressionConfig | None = None
        self._explicit_path = Path(config_path) if config_path else None

    def get_config_path(self) -> Path | None:
        """Determine config file path using priority order.

        Returns:
            Path to config file, or None if file doesn't exist
        """
        if self._explicit_path:
            if self._explicit_path.exists():
                return self._explicit_path
            logger.warning(f"Explicit expression config path does not exist: {self._explicit_path}")
            return None

        env_path_str = os.getenv(CONFIG_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            if env_path.exists():
                return env_path
            logger.warning(f"{CONFIG_ENV_VAR} path does not exist: {env_path}")
            return None

        standard_path = Path.home() / ".workflows" / "expressions.yml"
        if standard_path.exists():
            return standard_path

        return None

    def load_config(self) -> ExpressionConfig:
        """Load and validate expression configuration.

        Returns:
            Validated ExpressionConfig (defaults if no config file found)

        Raises:
            ValueError: If config file is invalid or fails validation
        """
        if self._config is not None:
            return self._config

        config_path = self.get_config_path()

        if config_path is None:
            logger.info("No expression config file found. Using built-in defaults.")
            self._config = ExpressionConfig()
            return self._config

        logger.info(f"Loading expression config from: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)

            if raw_config is None:
                raw_config = {}
            if not isinstance(raw_config, dict):
                raise ValueError("Config file must contain a YAML dictionary")

            config = ExpressionConfig(**raw_config)
            logger.info(
                f"Loaded expression config: {len(config.helper_families)} helper families, "
                f"{len(config.env_allowlist)} allow-listed environment variables"
            )

            self._config = config
            return config

        except (yaml.YAMLError, ValueError) as e:
            raise ValueError(f"Failed to load expression config from {config_path}: {e}") from e


def safe_environment(
    config: ExpressionConfig, environ: Mapping[str, str] | None = None
) -> dict[str, str]:
    """
    Allow-listed subset of the process environment, exposed as ``$env``.

    Args:
        config: Expression configuration
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Variables named in ``config.env_allowlist`` that are set
    """
    source = os.environ if environ is None else environ
    return {name: source[name] for name in config.env_allowlist if name in source}
