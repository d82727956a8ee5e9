"""Pydantic models for the chat request payload."""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ChatTurn(BaseModel):
	"""Single conversation turn as sent by the chat UI."""
	role: str  # "user", "assistant", or anything else (kept as-is)
	content: str


class ChatRequest(BaseModel):
	"""Payload for ``POST /chat``. Unknown client fields are ignored."""
	model_config = ConfigDict(populate_by_name=True)

	messages: List[ChatTurn] = Field(default_factory=list)
	chat_id: Optional[str] = Field(default=None, alias="chatId")
