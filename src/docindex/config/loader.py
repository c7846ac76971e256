"""Configuration loading from files and environment.

Supports:
- TOML config files
- Environment variables (DOCINDEX_* prefix, plus AZURE_OPENAI_* and LLAMA_CLOUD_*)
- .env files
- Multiple profiles (e.g. azure, local)
"""

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from docindex.config.schema import AppConfig, AzureOpenAISettings, LlamaCloudSettings
from docindex.observability.logging import get_logger

logger = get_logger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute environment variables in a data structure.

    Supports formats:
    - ${VAR_NAME}
    - ${VAR_NAME:-default}

    Unknown variables without a default are left untouched.
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):

        def replace_var(match: re.Match) -> str:
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default_value = var_expr.split(":-", 1)
                return os.getenv(var_name.strip(), default_value)

            var_name = var_expr.strip()
            value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    "env_var_not_found",
                    var_name=var_name,
                    suggestion="Check that the environment variable is set",
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    else:
        return obj


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge two config tables, descending into nested tables."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _build_credentials(config_data: dict[str, Any]) -> dict[str, Any]:
    """Turn credential tables into settings objects.

    Values from the file take precedence; anything missing is filled from
    the AZURE_OPENAI_* / LLAMA_CLOUD_* environment variables.
    """
    if isinstance(config_data.get("azure"), dict):
        config_data["azure"] = AzureOpenAISettings(**config_data["azure"])

    parser = config_data.get("parser")
    if isinstance(parser, dict) and isinstance(parser.get("llama_cloud"), dict):
        parser["llama_cloud"] = LlamaCloudSettings(**parser["llama_cloud"])

    return config_data


def load_config(
    config_path: Optional[Path] = None,
    profile: Optional[str] = None,
    env_file: Optional[Path] = None,
) -> AppConfig:
    """Load application configuration.

    Priority (highest to lowest):
    1. Config file
    2. Environment variables (DOCINDEX_*, nested with __)
    3. Defaults

    Args:
        config_path: Path to TOML config file
        profile: Config profile to use (e.g., "azure", "local")
        env_file: Path to .env file

    Returns:
        Loaded and validated configuration
    """
    if env_file and env_file.exists():
        load_dotenv(env_file)
        logger.info("loaded_env_file", path=str(env_file))

    config_data: dict[str, Any] = {}
    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)
        logger.info("loaded_config_file", path=str(config_path))

        profiles = config_data.pop("profiles", {})
        if profile:
            if profile in profiles:
                config_data = _merge(config_data, profiles[profile])
                logger.info("applied_profile", profile=profile)
            else:
                logger.warning("profile_not_found", profile=profile, available=sorted(profiles))

        config_data = _substitute_env_vars(config_data)
        logger.debug("substituted_env_vars_in_config")

    config = AppConfig(**_build_credentials(config_data))
    logger.info(
        "config_loaded",
        log_level=config.logging.level.value,
        llm_provider=config.llm.provider.value,
        embedding_provider=config.embedding.provider.value,
        reader=config.parser.reader.value,
        vector_store=config.vector_store.store_type.value,
    )

    return config


def get_default_config_path() -> Path:
    """Get the default config file path.

    Searches in order:
    1. ./docindex.toml
    2. ~/.docindex/config.toml
    3. /etc/docindex/config.toml
    """
    search_paths = [
        Path.cwd() / "docindex.toml",
        Path.home() / ".docindex" / "config.toml",
        Path("/etc/docindex/config.toml"),
    ]

    for path in search_paths:
        if path.exists():
            return path

    return search_paths[0]
