"""
YAML and .env configuration for the resolver.

Application settings live in dataclass sections filled from a YAML file;
secrets and overrides come from the environment (optionally via .env).
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from msku_resolver.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config/config.yaml")
CONFIG_FILE_ENV = "MSKU_CONFIG_FILE"

DUPLICATE_STRATEGIES = ("merge", "ignore", "error")
LOG_FORMATS = ("text", "json")

DEFAULT_SKU_FIELDS = ["sku", "sku_id", "product_id", "item_id", "product_code"]
DEFAULT_MARKETPLACE_FIELDS = ["marketplace", "channel", "store", "platform", "source"]
DEFAULT_PRODUCT_FIELDS = ["product", "name", "title", "product_name", "item_name", "description"]


@dataclass
class PathsConfig:
    """Where input files, reports, mapping files and logs live."""

    input_dir: str = "data/input"
    output_dir: str = "data/output"
    mapping_dir: str = "data/mapping"
    logs_dir: str = "logs"
    default_mapping_file: str = "sku_mappings.xlsx"

    @property
    def mapping_path(self) -> Path:
        return Path(self.mapping_dir) / self.default_mapping_file


@dataclass
class MappingConfig:
    # Duplicate (sku, marketplace) keys at load: merge keeps the last
    # record, ignore keeps the first, error refuses to load
    duplicate_handling: str = "merge"


@dataclass
class IngestionConfig:
    """Field-name heuristics for uploaded SKU files."""

    sku_fields: list[str] = field(default_factory=lambda: list(DEFAULT_SKU_FIELDS))
    marketplace_fields: list[str] = field(default_factory=lambda: list(DEFAULT_MARKETPLACE_FIELDS))
    product_fields: list[str] = field(default_factory=lambda: list(DEFAULT_PRODUCT_FIELDS))
    default_marketplace: str = "Unknown"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "text"
    file: str | None = None


@dataclass
class WebConfig:
    title: str = "MSKU Resolver"
    host: str = "127.0.0.1"
    port: int = 8000
    seed_demo_mappings: bool = True


@dataclass
class AppConfig:
    """All configuration sections, keyed as in the YAML file."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)


SECTIONS = {f.name: f.default_factory for f in fields(AppConfig)}


def load_env(env_file: Path = Path(".env")) -> None:
    """Load environment variables from a .env file if there is one."""
    if env_file.exists():
        load_dotenv(env_file)
        logger.debug(f"Environment overrides read from {env_file}")
    else:
        logger.debug(f"No {env_file} present")


def load_config(config_file: Path | None = None) -> AppConfig:
    """
    Load application configuration from a YAML file.

    The path defaults to $MSKU_CONFIG_FILE, then config/config.yaml. A
    missing file or an empty document yields the defaults.

    Args:
        config_file: YAML file to read; see above for the default.

    Returns:
        AppConfig: Parsed and validated settings.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If the document or a value is invalid.
    """
    if config_file is None:
        config_file = Path(get_env_var(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE)
    config_file = Path(config_file)

    if not config_file.exists():
        logger.warning(f"No config at {config_file}; running with built-in defaults")
        return AppConfig()

    with open(config_file, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return AppConfig()

    config = _parse_config(raw_config)
    logger.info(f"Configuration read from {config_file}")
    return config


def _build_section(name: str, raw_section: Any) -> Any:
    section_cls = SECTIONS[name]
    if raw_section is None:
        return section_cls()
    if not isinstance(raw_section, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(raw_section) - known)
    if unknown:
        logger.warning(f"Ignoring unknown keys in config section '{name}': {unknown}")

    return section_cls(**{k: v for k, v in raw_section.items() if k in known})


def _parse_config(raw: Any) -> AppConfig:
    """Build and validate an AppConfig from the parsed YAML document."""
    if not isinstance(raw, dict):
        raise ConfigurationError("Config file must contain a mapping of sections")

    config = AppConfig(**{name: _build_section(name, raw.get(name)) for name in SECTIONS})
    validate_config(config)
    return config


def validate_config(config: AppConfig) -> None:
    """
    Check values that the dataclasses cannot.

    Raises:
        ConfigurationError: On the first invalid value.
    """
    if config.mapping.duplicate_handling not in DUPLICATE_STRATEGIES:
        raise ConfigurationError(
            f"Invalid mapping.duplicate_handling: {config.mapping.duplicate_handling}. "
            f"Expected one of {DUPLICATE_STRATEGIES}"
        )
    if config.logging.format not in LOG_FORMATS:
        raise ConfigurationError(
            f"Invalid logging.format: {config.logging.format}. Expected one of {LOG_FORMATS}"
        )
    if not isinstance(config.web.port, int) or not 0 < config.web.port < 65536:
        raise ConfigurationError(f"Invalid web.port: {config.web.port}")


def get_env_var(key: str, default: str | None = None) -> str | None:
    """Read an environment variable, falling back to a default."""
    return os.environ.get(key, default)
