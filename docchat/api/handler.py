"""Request handler behind ``POST /chat``.

Turns a conversation into a streamed RAG answer:

1. validate the body and split it into history + current input
2. build the chat model, the embeddings client and a session-scoped retriever
3. start streaming the chain in a background task
4. wait for the retriever callback, then send headers and forward the stream

Every failure before the first body byte becomes a ``500 {"error": ...}``
response. A MongoDB client acquired for retrieval is always closed.
"""

import asyncio
import base64
import json
import logging
from typing import Any, AsyncIterator, Callable, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from langchain_core.documents import Document
from langchain_core.messages import AIMessage, BaseMessage, ChatMessage, HumanMessage
from pydantic import ValidationError
from starlette.background import BackgroundTask

from docchat.config import ChatSettings
from docchat.exceptions import InvalidRequestError
from docchat.rag.callbacks import DocumentCapture
from docchat.rag.chain import create_rag_chain
from docchat.rag.vector_store import load_retriever
from docchat.schemas.chat import ChatRequest, ChatTurn
from docchat.schemas.document import SourcePreview
from docchat.utils.llm_factory import LLMFactory, load_embeddings_model

logger = logging.getLogger("ChatHandler")

PREVIEW_LENGTH = 50
DEFAULT_ERROR_MESSAGE = "An error occurred during processing"

_END = object()


def parse_chat_request(payload: Any) -> ChatRequest:
	"""Validate a decoded JSON body.

	Raises:
		InvalidRequestError: If the body is not an object, has no messages,
			or the messages are malformed.
	"""
	if not isinstance(payload, dict):
		raise InvalidRequestError("Request body must be a JSON object.")
	if not payload.get("messages"):
		raise InvalidRequestError("No messages provided.")
	try:
		return ChatRequest.model_validate(payload)
	except ValidationError as e:
		raise InvalidRequestError(f"Invalid chat request: {e.error_count()} validation error(s).") from e


def format_message(turn: ChatTurn) -> BaseMessage:
	"""Map a chat-UI turn onto the matching LangChain message type."""
	if turn.role == "user":
		return HumanMessage(content=turn.content)
	if turn.role == "assistant":
		return AIMessage(content=turn.content)
	logger.warning(f'Unknown message type passed: "{turn.role}". Falling back to generic message type.')
	return ChatMessage(role=turn.role, content=turn.content)


def serialize_sources(documents: List[Document]) -> str:
	"""Base64-encoded JSON array of truncated document previews."""
	previews = [
		SourcePreview(
			page_content=doc.page_content[:PREVIEW_LENGTH] + "...",
			metadata=doc.metadata,
		).model_dump(by_alias=True)
		for doc in documents
	]
	# default=str covers ObjectId / datetime values in Mongo metadata
	payload = json.dumps(previews, ensure_ascii=False, separators=(",", ":"), default=str)
	return base64.b64encode(payload.encode("utf-8")).decode("ascii")


class StreamPump:
	"""Drains an async stream into a queue from a background task.

	Starting the task right away lets the chain run (and the retriever
	report) before anything is sent to the client.
	"""

	def __init__(self, stream: AsyncIterator[Any]):
		self._queue: asyncio.Queue = asyncio.Queue()
		self.task = asyncio.create_task(self._drain(stream))

	async def _drain(self, stream: AsyncIterator[Any]) -> None:
		try:
			async for chunk in stream:
				await self._queue.put(chunk)
		finally:
			self._queue.put_nowait(_END)

	def cancel(self) -> None:
		if not self.task.done():
			self.task.cancel()

	async def aclose(self) -> None:
		"""Cancel the drain task and wait for it to settle."""
		self.cancel()
		await asyncio.gather(self.task, return_exceptions=True)

	async def iter_bytes(self) -> AsyncIterator[bytes]:
		"""Yield the streamed chunks as UTF-8 bytes until the chain finishes."""
		try:
			while True:
				chunk = await self._queue.get()
				if chunk is _END:
					break
				text = chunk if isinstance(chunk, str) else getattr(chunk, "content", str(chunk))
				if text:
					yield text.encode("utf-8")
			await self.task
		except Exception as e:
			# Headers are already sent; the body just ends here.
			logger.error(f"Error while streaming the answer: {e}", exc_info=True)
		finally:
			self.cancel()


class ChatHandler:
	"""Streams RAG answers for ``POST /chat``.

	The collaborators are injectable so tests can swap in fake models,
	retrievers and database clients.
	"""

	def __init__(
		self,
		settings: ChatSettings,
		model_factory: Callable = LLMFactory.from_settings,
		embeddings_factory: Callable = load_embeddings_model,
		retriever_loader: Callable = load_retriever,
		chain_factory: Callable = create_rag_chain,
	):
		self.settings = settings
		self.model_factory = model_factory
		self.embeddings_factory = embeddings_factory
		self.retriever_loader = retriever_loader
		self.chain_factory = chain_factory

	async def handle(self, request: Request) -> Response:
		mongo_client = None
		pump: Optional[StreamPump] = None

		try:
			try:
				payload = await request.json()
			except ValueError as e:
				raise InvalidRequestError("Request body is not valid JSON.") from e

			chat_request = parse_chat_request(payload)
			history = [format_message(turn) for turn in chat_request.messages[:-1]]
			current_input = chat_request.messages[-1].content
			logger.info(f"💬 Chat request (chat_id={chat_request.chat_id}, history={len(history)})")

			model = self.model_factory(self.settings)
			embeddings = self.embeddings_factory(self.settings)

			capture = DocumentCapture()
			retriever_info = self.retriever_loader(
				chat_id=chat_request.chat_id,
				embeddings=embeddings,
				callbacks=[capture],
				settings=self.settings,
			)
			mongo_client = retriever_info.mongo_client

			chain = self.chain_factory(model, retriever_info.retriever)
			pump = StreamPump(chain.astream({
				"input": current_input,
				"chat_history": history,
			}))

			documents = await capture.wait(pump.task)
			headers = {
				"x-message-index": str(len(history) + 1),
				"x-sources": serialize_sources(documents),
			}
			logger.info(f"📚 Streaming answer with {len(documents)} sources")

			return StreamingResponse(
				pump.iter_bytes(),
				media_type="text/plain; charset=utf-8",
				headers=headers,
				background=BackgroundTask(pump.aclose),
			)
		except Exception as e:
			logger.error(f"Error in RAG processing: {e}", exc_info=True)
			if pump is not None:
				pump.cancel()
			return JSONResponse({"error": str(e) or DEFAULT_ERROR_MESSAGE}, status_code=500)
		finally:
			if mongo_client is not None:
				mongo_client.close()
