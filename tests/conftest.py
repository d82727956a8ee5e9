from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from langchain_core.callbacks import CallbackManagerForRetrieverRun
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.retrievers import BaseRetriever
from pydantic import Field

from docchat.api.dependencies import get_chat_handler
from docchat.api.handler import ChatHandler
from docchat.api.main import app
from docchat.config import ChatSettings
from docchat.config_manager import ConfigManager
from docchat.rag.vector_store import RetrieverInfo


class StaticRetriever(BaseRetriever):
    """Retriever returning a fixed list of documents and recording queries."""

    documents: List[Document] = Field(default_factory=list)
    queries: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    def _get_relevant_documents(
        self, query: str, *, run_manager: CallbackManagerForRetrieverRun
    ) -> List[Document]:
        self.queries.append(query)
        if self.error:
            raise RuntimeError(self.error)
        return list(self.documents)


class FakeMongoClient:
    def __init__(self):
        self.close_count = 0

    def close(self):
        self.close_count += 1


class FakeRetrieverLoader:
    """Stands in for ``load_retriever``; keeps the retriever it built."""

    def __init__(self, documents=None, mongo_client=None, error=None, retriever_error=None):
        self.documents = documents or []
        self.mongo_client = mongo_client
        self.error = error
        self.retriever_error = retriever_error
        self.chat_ids = []
        self.retriever: Optional[StaticRetriever] = None

    def __call__(self, chat_id, embeddings, callbacks, settings):
        self.chat_ids.append(chat_id)
        if self.error:
            raise self.error
        self.retriever = StaticRetriever(documents=self.documents, error=self.retriever_error)
        return RetrieverInfo(
            retriever=self.retriever.with_config(callbacks=callbacks),
            mongo_client=self.mongo_client,
        )


@pytest.fixture(autouse=True)
def reset_config_manager():
    ConfigManager._config = None
    ConfigManager._config_path = None
    yield
    ConfigManager._config = None
    ConfigManager._config_path = None


@pytest.fixture
def settings(tmp_path) -> ChatSettings:
    return ChatSettings(
        google_api_key="test-google-key",
        chroma_persist_dir=str(tmp_path / "chromadb"),
        chroma_collection="test_docs",
    )


@pytest.fixture
def sample_documents() -> List[Document]:
    return [
        Document(
            page_content="The quarterly report shows revenue grew by twelve percent over the previous period.",
            metadata={"chat_id": "chat-1", "source": "report.pdf", "chunk": 0},
        ),
        Document(
            page_content="Short note.",
            metadata={"chat_id": "chat-1", "source": "notes.txt", "chunk": 0},
        ),
    ]


@pytest.fixture
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=16)


@pytest.fixture
def make_handler(settings, fake_embeddings):
    def _make(loader, responses=None, chain_factory=None, model_factory=None):
        kwargs = {}
        if chain_factory is not None:
            kwargs["chain_factory"] = chain_factory
        return ChatHandler(
            settings,
            model_factory=model_factory or (lambda _settings: FakeListChatModel(responses=responses or ["Hello there!"])),
            embeddings_factory=lambda _settings: fake_embeddings,
            retriever_loader=loader,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_client():
    def _make(handler: ChatHandler) -> TestClient:
        app.dependency_overrides[get_chat_handler] = lambda: handler
        return TestClient(app)
    yield _make
    app.dependency_overrides.clear()
