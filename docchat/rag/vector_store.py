import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pymongo import MongoClient
from langchain_chroma import Chroma
from langchain_mongodb import MongoDBAtlasVectorSearch
from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.embeddings import Embeddings
from langchain_core.runnables import Runnable
from langchain_core.vectorstores import VectorStore

from docchat.config import ChatSettings

logger = logging.getLogger("VectorStore")

# Metadata key tagging every chunk with the conversation it was uploaded for.
# The MongoDB Atlas index must declare it as a "filter" field.
CHAT_ID_KEY = "chat_id"


@dataclass
class RetrieverInfo:
    """A session-scoped retriever plus the Mongo client backing it, if any."""
    retriever: Runnable
    mongo_client: Optional[MongoClient] = None


def open_vector_store(settings: ChatSettings, embeddings: Embeddings) -> Tuple[VectorStore, Optional[MongoClient]]:
    """Open the configured vector store.

    Returns:
        The LangChain vector store and, for the MongoDB backend, the client
        that the caller must close.

    Raises:
        ValueError: If the MongoDB backend is selected without a URI.
    """
    if settings.uses_mongodb:
        if not settings.mongodb_uri:
            raise ValueError("MONGODB_ATLAS_URI is missing. Please set it in your .env file.")
        client = MongoClient(settings.mongodb_uri)
        collection = client[settings.mongodb_db_name][settings.mongodb_collection]
        logger.debug(
            f"🍃 MongoDB Atlas store: {settings.mongodb_db_name}.{settings.mongodb_collection} "
            f"(index={settings.mongodb_index_name})"
        )
        vector_store = MongoDBAtlasVectorSearch(
            collection=collection,
            embedding=embeddings,
            index_name=settings.mongodb_index_name,
        )
        return vector_store, client

    logger.debug(f"🧠 Chroma store at {settings.chroma_persist_dir} ({settings.chroma_collection})")
    vector_store = Chroma(
        collection_name=settings.chroma_collection,
        embedding_function=embeddings,
        persist_directory=settings.chroma_persist_dir,
    )
    return vector_store, None


def _search_kwargs(settings: ChatSettings, chat_id: Optional[str]) -> Dict[str, Any]:
    search_kwargs: Dict[str, Any] = {"k": settings.search_k}
    if chat_id is None:
        return search_kwargs
    if settings.uses_mongodb:
        search_kwargs["pre_filter"] = {CHAT_ID_KEY: {"$eq": chat_id}}
    else:
        search_kwargs["filter"] = {CHAT_ID_KEY: chat_id}
    return search_kwargs


def load_retriever(
    chat_id: Optional[str],
    embeddings: Embeddings,
    callbacks: List[BaseCallbackHandler],
    settings: ChatSettings,
) -> RetrieverInfo:
    """Return a retriever restricted to the documents of ``chat_id``.

    ``callbacks`` are bound into the retriever's runnable config so they
    fire on every retrieval it performs, whichever chain invokes it.
    """
    vector_store, mongo_client = open_vector_store(settings, embeddings)
    try:
        retriever = vector_store.as_retriever(
            search_kwargs=_search_kwargs(settings, chat_id),
        ).with_config(callbacks=callbacks)
    except Exception:
        if mongo_client is not None:
            mongo_client.close()
        raise

    logger.info(f"🔎 Retriever ready (backend={settings.vector_store}, chat_id={chat_id})")
    return RetrieverInfo(retriever=retriever, mongo_client=mongo_client)
