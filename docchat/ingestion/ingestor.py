import io
import logging
import os
from typing import List, Sequence

from tqdm import tqdm
from PyPDF2 import PdfReader

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_text_splitters import RecursiveCharacterTextSplitter

from docchat.config import ChatSettings
from docchat.rag.vector_store import CHAT_ID_KEY, open_vector_store

logger = logging.getLogger("DocumentIngestor")

TEXT_SUFFIXES = {".txt", ".md"}
PDF_SUFFIXES = {".pdf"}


class DocumentIngestor:
    """Chunk files and store them in the vector store under a chat id.

    Chunks carry ``chat_id`` metadata so the chat retriever can restrict
    search to the documents uploaded for that conversation.
    """

    def __init__(self, settings: ChatSettings, embeddings: Embeddings, batch_size: int = 100):
        self.settings = settings
        self.embeddings = embeddings
        self.batch_size = batch_size
        self.text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        )
        logger.info(f"✂️ Chunking Strategy: Size={settings.chunk_size}, Overlap={settings.chunk_overlap}")

    @staticmethod
    def load_file(path: str) -> str:
        """Read a text, Markdown or PDF file into a string.

        PDF pages without extractable text are skipped.

        Raises:
            ValueError: For unsupported file types.
        """
        suffix = os.path.splitext(path)[1].lower()
        if suffix in TEXT_SUFFIXES:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        if suffix in PDF_SUFFIXES:
            with open(path, "rb") as f:
                reader = PdfReader(io.BytesIO(f.read()))
            pages = [page.extract_text() for page in reader.pages]
            return "\n".join(text for text in pages if text)
        raise ValueError(f"Unsupported file type '{suffix}' for {path}")

    def split(self, text: str, chat_id: str, source: str) -> List[Document]:
        """Split ``text`` into chunks tagged with the chat id and source name."""
        chunks = self.text_splitter.split_text(text)
        return [
            Document(
                page_content=chunk,
                metadata={CHAT_ID_KEY: chat_id, "source": source, "chunk": i},
            )
            for i, chunk in enumerate(chunks)
        ]

    def ingest(self, paths: Sequence[str], chat_id: str) -> int:
        """Load, chunk and embed ``paths`` for ``chat_id``.

        Returns:
            Number of chunks written to the vector store.
        """
        documents: List[Document] = []
        for path in paths:
            text = self.load_file(path)
            if not text.strip():
                logger.warning(f"⚠️ No text extracted from {path}, skipping")
                continue
            documents.extend(self.split(text, chat_id=chat_id, source=os.path.basename(path)))

        if not documents:
            logger.error("❌ No documents to ingest.")
            return 0

        logger.info(f"📊 Total chunks generated: {len(documents)}")
        vector_store, mongo_client = open_vector_store(self.settings, self.embeddings)
        try:
            for i in tqdm(range(0, len(documents), self.batch_size), desc="Embedding Chunks", unit="batch"):
                vector_store.add_documents(documents=documents[i : i + self.batch_size])
        finally:
            if mongo_client is not None:
                mongo_client.close()

        logger.info(f"✅ Stored {len(documents)} chunks for chat_id={chat_id}")
        return len(documents)
