"""Explicit settings passed into the chat handler.

``ChatSettings.from_config`` merges ``cfg/config.json`` (via ConfigManager)
with secrets and backend overrides from the environment (``.env`` is
honoured through python-dotenv). Tests build ``ChatSettings`` directly.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from docchat.config_manager import ConfigManager, DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)

SUPPORTED_VECTOR_STORES = ("chroma", "mongodb")


@dataclass(frozen=True)
class ChatSettings:
    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Generation
    llm_provider: str = "google"
    llm_model: str = "gemini-2.5-flash"
    llm_max_retries: int = 2

    # Embeddings / chunking
    embedding_model: str = "models/text-embedding-004"
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Vector store
    vector_store: str = "chroma"
    search_k: int = 4
    chroma_persist_dir: str = "data/chromadb"
    chroma_collection: str = "docchat"
    mongodb_uri: Optional[str] = None
    mongodb_db_name: str = "docchat"
    mongodb_collection: str = "documents"
    mongodb_index_name: str = "vector_index"

    def __post_init__(self):
        if self.vector_store not in SUPPORTED_VECTOR_STORES:
            raise ValueError(
                f"Unsupported vector store '{self.vector_store}'. Valid options: {list(SUPPORTED_VECTOR_STORES)}"
            )

    @property
    def uses_mongodb(self) -> bool:
        return self.vector_store == "mongodb"

    @classmethod
    def from_config(cls, config_path: str = DEFAULT_CONFIG_PATH) -> "ChatSettings":
        """Build settings from the JSON config file and the environment.

        Environment variables win over the file for the backend selection
        and the MongoDB names; API keys and the MongoDB URI are read from
        the environment only.
        """
        load_dotenv()
        ConfigManager.load(config_path)

        llm_config = ConfigManager.get_llm_config("chat")
        embedding_config = ConfigManager.get_embedding_config()
        store_config = ConfigManager.get_vector_store_config()
        chroma_config = store_config.get("chroma", {})
        mongo_config = store_config.get("mongodb", {})

        backend = os.getenv("VECTORSTORE") or store_config.get("backend", "chroma")
        logger.debug(f"Vector store backend selected: {backend}")

        return cls(
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            llm_provider=llm_config.get("provider", "google"),
            llm_model=llm_config.get("model_name") or llm_config.get("model") or "gemini-2.5-flash",
            llm_max_retries=llm_config.get("max_retries", 2),
            embedding_model=embedding_config.get("model_name", "models/text-embedding-004"),
            chunk_size=embedding_config.get("chunk_size", 1000),
            chunk_overlap=embedding_config.get("chunk_overlap", 200),
            vector_store=backend.lower(),
            search_k=store_config.get("search_k", 4),
            chroma_persist_dir=chroma_config.get("persist_dir", "data/chromadb"),
            chroma_collection=chroma_config.get("collection_name", "docchat"),
            mongodb_uri=os.getenv("MONGODB_ATLAS_URI"),
            mongodb_db_name=os.getenv("MONGODB_ATLAS_DB_NAME") or mongo_config.get("db_name", "docchat"),
            mongodb_collection=os.getenv("MONGODB_ATLAS_COLLECTION_NAME") or mongo_config.get("collection_name", "documents"),
            mongodb_index_name=mongo_config.get("index_name", "vector_index"),
        )
