"""Error types raised by the chat pipeline."""


class DocChatError(Exception):
    """Base class for docchat errors."""


class InvalidRequestError(DocChatError):
    """The request body cannot be turned into a conversation."""


class RetrievalError(DocChatError):
    """The retriever never reported its documents for the request."""
