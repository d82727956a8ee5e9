"""Pydantic models for retrieved-document previews."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict


class SourcePreview(BaseModel):
	"""Truncated view of a retrieved document, sent in the ``x-sources`` header."""
	model_config = ConfigDict(populate_by_name=True)

	page_content: str = Field(alias="pageContent")
	metadata: Dict[str, Any] = Field(default_factory=dict)
