"""Centralized configuration manager for the docchat service.

Loads ``cfg/config.json`` once and exposes hierarchical lookups with
defaults. Secrets never live in this file; they come from the environment
(see ``docchat.config.ChatSettings``).

Usage:
    from docchat.config_manager import ConfigManager

    ConfigManager.load("cfg/config.json")
    search_k = ConfigManager.get("vector_store", "search_k", default=4)
    llm_config = ConfigManager.get_llm_config()
"""

import json
import os
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "cfg/config.json"


class ConfigManager:
    """Process-wide configuration store with hierarchical key access."""

    _config: Optional[Dict[str, Any]] = None
    _config_path: Optional[str] = None

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
        """Load configuration from a JSON file.

        A missing file is not an error: the service runs on built-in
        defaults and environment variables alone.

        Args:
            config_path: Path to configuration file.

        Returns:
            Dictionary containing the entire configuration.

        Raises:
            json.JSONDecodeError: If the configuration file is invalid JSON.
        """
        if cls._config is not None and cls._config_path == config_path:
            logger.debug(f"Using cached configuration from {config_path}")
            return cls._config

        if not os.path.exists(config_path):
            logger.warning(f"Configuration file not found: {config_path}. Using defaults.")
            cls._config = {}
            cls._config_path = config_path
            return cls._config

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                cls._config = json.load(f)
                cls._config_path = config_path
                logger.info(f"✅ Configuration loaded from {config_path}")
                return cls._config
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file: {e}")
            raise

    @classmethod
    def get(cls, *keys: str, default: Any = None) -> Any:
        """Get a configuration value using hierarchical keys.

        Examples:
            >>> ConfigManager.get("vector_store", "backend")
            "chroma"

            >>> ConfigManager.get("nonexistent", "key", default="fallback")
            "fallback"
        """
        if cls._config is None:
            cls.load()

        value = cls._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    logger.debug(f"Key path not found: {' -> '.join(keys)}. Using default: {default}")
                    return default
            else:
                logger.warning(f"Cannot traverse non-dict value at key: {key}")
                return default

        return value if value is not None else default

    @classmethod
    def get_section(cls, section: str) -> Dict[str, Any]:
        """Get an entire configuration section, or an empty dict."""
        if cls._config is None:
            cls.load()

        return cls._config.get(section, {})

    @classmethod
    def reload(cls) -> None:
        """Force reload configuration from disk."""
        config_path = cls._config_path or DEFAULT_CONFIG_PATH
        cls._config = None
        cls._config_path = None
        cls.load(config_path)
        logger.info(f"Configuration reloaded from {config_path}")

    @classmethod
    def get_llm_config(cls, component: str = "default") -> Dict[str, Any]:
        """Get LLM configuration for a specific component.

        Args:
            component: Component name (default, chat, condense).

        Returns:
            Component-specific settings when present, otherwise the general
            ``llm_settings`` section.
        """
        if component == "default":
            return cls.get_section("llm_settings")

        component_config = cls.get("llm_settings", "components", component)
        if component_config:
            return component_config

        logger.debug(f"No component-specific config for '{component}', using default")
        return cls.get_section("llm_settings")

    @classmethod
    def get_embedding_config(cls) -> Dict[str, Any]:
        return cls.get_section("embedding_settings")

    @classmethod
    def get_vector_store_config(cls) -> Dict[str, Any]:
        return cls.get_section("vector_store")

    @classmethod
    def get_prompt(cls, *keys: str) -> str:
        """Get a prompt template under ``prompts``; empty string when unset."""
        return cls.get("prompts", *keys, default="")
