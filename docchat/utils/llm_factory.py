import logging
from typing import Any, Dict, Optional
from enum import Enum

from langchain_google_genai import (
    ChatGoogleGenerativeAI,
    GoogleGenerativeAIEmbeddings,
    HarmBlockThreshold,
    HarmCategory,
)
from langchain_openai import ChatOpenAI
from langchain_core.language_models.chat_models import BaseChatModel

from docchat.config import ChatSettings

logger = logging.getLogger(__name__)

# Only high-confidence harassment / hate speech is blocked
SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_ONLY_HIGH,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_ONLY_HIGH,
}


class LLMProvider(Enum):
    """
    Enumeration of supported LLM providers.
    """
    GOOGLE = "google"
    OPENAI = "openai"


class LLMFactory:
    """
    Factory class to create and configure LangChain Chat Model instances.

    The chat endpoint always generates deterministically (temperature 0);
    the provider is picked from configuration.
    """

    @staticmethod
    def create_llm(
        config: Dict[str, Any],
        provider: str = "google",
        api_key: Optional[str] = None,
    ) -> BaseChatModel:
        """
        Creates and returns a configured LangChain Chat Model.

        Args:
            config (Dict[str, Any]): Model settings (model_name, temperature, max_retries).
            provider (str): The provider name (default: "google").
            api_key (Optional[str]): Credential for the provider.

        Returns:
            BaseChatModel: An initialized LangChain chat model.

        Raises:
            ValueError: If the provider is not supported or the API key is missing.
        """
        try:
            provider_enum = LLMProvider(provider.lower())
        except ValueError:
            valid_options = [p.value for p in LLMProvider]
            raise ValueError(f"Unsupported provider '{provider}'. Valid options: {valid_options}")

        model_hint = config.get("model_name") or config.get("model")
        logger.info(f"Initializing LLM with provider: {provider_enum.value} | Model: {model_hint}")

        if provider_enum == LLMProvider.GOOGLE:
            return LLMFactory._create_google_model(config, api_key)

        elif provider_enum == LLMProvider.OPENAI:
            return LLMFactory._create_openai_model(config, api_key)

        raise ValueError(f"Provider '{provider}' is technically valid but not implemented.")

    @staticmethod
    def from_settings(settings: ChatSettings) -> BaseChatModel:
        """Build the chat model described by ``settings``."""
        config = {
            "model_name": settings.llm_model,
            "temperature": 0.0,
            "max_retries": settings.llm_max_retries,
        }
        if settings.llm_provider.lower() == LLMProvider.OPENAI.value:
            return LLMFactory.create_llm(config, provider="openai", api_key=settings.openai_api_key)
        return LLMFactory.create_llm(config, provider=settings.llm_provider, api_key=settings.google_api_key)

    @staticmethod
    def _create_google_model(config: Dict[str, Any], api_key: Optional[str]) -> ChatGoogleGenerativeAI:
        """
        Internal helper to create a Google Gemini Chat model with safety filters.
        """
        if not api_key:
            logger.error("GOOGLE_API_KEY is not configured.")
            raise ValueError("GOOGLE_API_KEY is missing. Please set it in your .env file.")

        model_name = config.get("model_name") or config.get("model") or "gemini-2.5-flash"
        temperature = config.get("temperature", 0.0)
        max_retries = config.get("max_retries", 2)

        return ChatGoogleGenerativeAI(
            model=model_name,
            temperature=temperature,
            max_retries=max_retries,
            google_api_key=api_key,
            safety_settings=dict(SAFETY_SETTINGS),
        )

    @staticmethod
    def _create_openai_model(config: Dict[str, Any], api_key: Optional[str]) -> ChatOpenAI:
        """
        Internal helper to create an OpenAI Chat model.
        """
        if not api_key:
            logger.error("OPENAI_API_KEY is not configured.")
            raise ValueError("OPENAI_API_KEY is missing. Please set it in your .env file.")

        model_name = config.get("model_name") or config.get("model") or "gpt-4o-mini"
        temperature = config.get("temperature", 0.0)
        max_retries = config.get("max_retries", 2)

        return ChatOpenAI(
            model=model_name,
            temperature=temperature,
            max_retries=max_retries,
            api_key=api_key
        )


def load_embeddings_model(settings: ChatSettings) -> GoogleGenerativeAIEmbeddings:
    """Return the Gemini embeddings client used for retrieval and ingestion."""
    if not settings.google_api_key:
        raise ValueError("GOOGLE_API_KEY is missing. Please set it in your .env file.")
    return GoogleGenerativeAIEmbeddings(
        model=settings.embedding_model,
        google_api_key=settings.google_api_key,
    )
