import pytest
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from langchain_openai import ChatOpenAI

from docchat.config import ChatSettings
from docchat.utils.llm_factory import SAFETY_SETTINGS, LLMFactory, load_embeddings_model


def test_unsupported_provider_lists_valid_options():
    with pytest.raises(ValueError, match="Valid options"):
        LLMFactory.create_llm({"model_name": "x"}, provider="anthropic", api_key="k")


def test_google_model_requires_api_key():
    with pytest.raises(ValueError, match="GOOGLE_API_KEY is missing"):
        LLMFactory.from_settings(ChatSettings())


def test_google_model_is_deterministic_with_safety_filters():
    llm = LLMFactory.from_settings(ChatSettings(google_api_key="test-key", llm_model="gemini-test"))

    assert isinstance(llm, ChatGoogleGenerativeAI)
    assert llm.temperature == 0.0
    assert llm.safety_settings == SAFETY_SETTINGS
    assert len(SAFETY_SETTINGS) == 2


def test_openai_provider_uses_openai_key():
    settings = ChatSettings(llm_provider="openai", llm_model="gpt-4o-mini", openai_api_key="sk-test")

    llm = LLMFactory.from_settings(settings)

    assert isinstance(llm, ChatOpenAI)
    assert llm.model_name == "gpt-4o-mini"
    assert llm.temperature == 0.0


def test_openai_provider_requires_key():
    with pytest.raises(ValueError, match="OPENAI_API_KEY is missing"):
        LLMFactory.from_settings(ChatSettings(llm_provider="openai", google_api_key="g"))


def test_embeddings_model_uses_configured_model():
    embeddings = load_embeddings_model(ChatSettings(google_api_key="test-key"))

    assert isinstance(embeddings, GoogleGenerativeAIEmbeddings)
    assert embeddings.model.endswith("text-embedding-004")


def test_embeddings_model_requires_api_key():
    with pytest.raises(ValueError):
        load_embeddings_model(ChatSettings())
