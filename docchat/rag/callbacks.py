import asyncio
import logging
from typing import Any, List, Optional, Sequence
from uuid import UUID

from langchain_core.callbacks import AsyncCallbackHandler
from langchain_core.documents import Document

from docchat.exceptions import RetrievalError

logger = logging.getLogger("DocumentCapture")


class DocumentCapture(AsyncCallbackHandler):
    """One-shot capture of the documents a retriever returns.

    Attach it to the retriever; the first ``on_retriever_end`` resolves an
    ``asyncio.Future`` and later retrievals are ignored. Must be created
    inside the event loop that runs the chain.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    async def on_retriever_end(
        self,
        documents: Sequence[Document],
        *,
        run_id: UUID,
        parent_run_id: Optional[UUID] = None,
        tags: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        if self._future.done():
            return
        logger.debug(f"📚 Retriever returned {len(documents)} documents")
        self._future.set_result(list(documents))

    async def wait(self, producer: "asyncio.Future[Any]") -> List[Document]:
        """Wait for the documents, or for ``producer`` to end first.

        Raises:
            Exception: Whatever ``producer`` failed with before retrieval finished.
            RetrievalError: If ``producer`` completed without any retrieval.
        """
        await asyncio.wait({self._future, producer}, return_when=asyncio.FIRST_COMPLETED)
        if self._future.done():
            return self._future.result()

        producer.result()
        raise RetrievalError("The chain finished without reporting any retrieved documents.")
