"""API routes for the docchat service."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from .dependencies import get_chat_handler
from .handler import ChatHandler

router = APIRouter(tags=["chat"])


@router.post("/chat")
async def chat(request: Request, handler: ChatHandler = Depends(get_chat_handler)) -> Response:
	"""Stream a RAG answer for the posted conversation.

	Body: ``{"messages": [{"role", "content"}, ...], "chatId"?: str}``.
	Success is a text stream with ``x-message-index`` and ``x-sources``
	headers; any failure is ``500 {"error": ...}``.
	"""
	return await handler.handle(request)
