"""Dependency wiring for FastAPI routes.

Provide shared singletons like settings and the chat handler.
"""

from functools import lru_cache
from docchat.config import ChatSettings
from docchat.api.handler import ChatHandler


@lru_cache(maxsize=1)
def get_settings() -> ChatSettings:
	"""Return settings built once from cfg/config.json and the environment."""
	return ChatSettings.from_config()


@lru_cache(maxsize=1)
def get_chat_handler() -> ChatHandler:
	"""Return a cached `ChatHandler` singleton instance."""
	return ChatHandler(get_settings())
