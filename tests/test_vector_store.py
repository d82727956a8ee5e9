import pytest
from langchain_chroma import Chroma
from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.documents import Document

from conftest import FakeMongoClient
from docchat.config import ChatSettings
from docchat.rag import vector_store as vector_store_module
from docchat.rag.vector_store import _search_kwargs, load_retriever, open_vector_store


def test_search_kwargs_scope_by_backend():
    chroma = ChatSettings(search_k=3)
    mongo = ChatSettings(vector_store="mongodb", search_k=5)

    assert _search_kwargs(chroma, "abc") == {"k": 3, "filter": {"chat_id": "abc"}}
    assert _search_kwargs(mongo, "abc") == {"k": 5, "pre_filter": {"chat_id": {"$eq": "abc"}}}
    assert _search_kwargs(chroma, None) == {"k": 3}


def test_chroma_retriever_has_no_db_handle(settings, fake_embeddings):
    callback = BaseCallbackHandler()

    info = load_retriever("chat-1", fake_embeddings, [callback], settings)

    assert info.mongo_client is None
    assert info.retriever.config["callbacks"] == [callback]
    assert info.retriever.bound.search_kwargs == {"k": settings.search_k, "filter": {"chat_id": "chat-1"}}


def test_chroma_retriever_only_sees_its_chat(settings, fake_embeddings):
    store, _ = open_vector_store(settings, fake_embeddings)
    assert isinstance(store, Chroma)
    store.add_documents([
        Document(page_content="alpha document", metadata={"chat_id": "chat-a"}),
        Document(page_content="beta document", metadata={"chat_id": "chat-b"}),
    ])

    info = load_retriever("chat-a", fake_embeddings, [], settings)
    documents = info.retriever.invoke("document")

    assert [doc.page_content for doc in documents] == ["alpha document"]


def test_mongodb_requires_uri(fake_embeddings):
    with pytest.raises(ValueError, match="MONGODB_ATLAS_URI is missing"):
        open_vector_store(ChatSettings(vector_store="mongodb"), fake_embeddings)


class _BrokenStore:
    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def as_retriever(self, **kwargs):
        raise RuntimeError("index missing")


class _FakeCollectionClient(FakeMongoClient):
    def __getitem__(self, name):
        return {"documents": {}}


def test_mongo_client_closed_when_retriever_build_fails(monkeypatch, fake_embeddings):
    clients = []

    def fake_client(uri):
        client = _FakeCollectionClient()
        clients.append(client)
        return client

    monkeypatch.setattr(vector_store_module, "MongoClient", fake_client)
    monkeypatch.setattr(vector_store_module, "MongoDBAtlasVectorSearch", _BrokenStore)
    settings = ChatSettings(vector_store="mongodb", mongodb_uri="mongodb://localhost:27017")

    with pytest.raises(RuntimeError, match="index missing"):
        load_retriever("chat-1", fake_embeddings, [], settings)

    assert len(clients) == 1
    assert clients[0].close_count == 1
