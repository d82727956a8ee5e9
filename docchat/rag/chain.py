"""LCEL retrieval-augmented generation chain.

Input: ``{"input": str, "chat_history": list[BaseMessage]}``.
Output: the answer, streamed as plain strings.

The chain condenses follow-up questions into standalone queries before
retrieval (only when there is history), stuffs the retrieved documents
into the answer prompt, and parses the model output to text.
"""

import logging
from typing import Dict, List, Optional

from langchain_core.documents import Document
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable, RunnableBranch, RunnableLambda, RunnablePassthrough

from docchat.config_manager import ConfigManager

logger = logging.getLogger("RAGChain")

DEFAULT_CONDENSE_PROMPT = """Given the above conversation, generate a search query to look up \
in order to get information relevant to the conversation. Do not answer the question, \
only return the standalone query."""

DEFAULT_ANSWER_PROMPT = """You are an assistant answering questions about documents the user uploaded.
Use ONLY the following pieces of retrieved context to answer the question.
If the answer is not in the context, say that you don't know.
Answer in Markdown and keep it concise.

<context>
{context}
</context>"""


def format_documents(documents: List[Document]) -> str:
    """Join document contents into a single context block."""
    return "\n\n".join(doc.page_content for doc in documents)


def _has_history(inputs: Dict) -> bool:
    return bool(inputs.get("chat_history"))


def create_history_aware_retriever(
    model: BaseChatModel,
    retriever: Runnable,
    condense_prompt: ChatPromptTemplate,
) -> Runnable:
    """Retrieve with the raw input, or with a model-condensed query when history exists."""
    return RunnableBranch(
        (
            lambda inputs: not _has_history(inputs),
            RunnableLambda(lambda inputs: inputs["input"]) | retriever,
        ),
        condense_prompt | model | StrOutputParser() | retriever,
    ).with_config(run_name="history_aware_retriever")


def create_rag_chain(
    model: BaseChatModel,
    retriever: Runnable,
    prompts: Optional[Dict[str, str]] = None,
) -> Runnable:
    """Compose the streaming RAG chain.

    Args:
        model: Chat model used for both query condensing and answering.
        retriever: Session-scoped retriever runnable (callbacks already bound).
        prompts: Optional ``{"condense": ..., "answer": ...}`` overrides. When
            omitted, ``prompts.rag`` from the config file is used, falling back
            to the built-in defaults.

    Returns:
        A runnable whose ``astream``/``stream`` yields answer text chunks.
    """
    prompts = prompts or {}
    condense_text = prompts.get("condense") or ConfigManager.get_prompt("rag", "condense") or DEFAULT_CONDENSE_PROMPT
    answer_text = prompts.get("answer") or ConfigManager.get_prompt("rag", "answer") or DEFAULT_ANSWER_PROMPT

    condense_prompt = ChatPromptTemplate.from_messages([
        MessagesPlaceholder("chat_history"),
        ("human", "{input}"),
        ("human", condense_text),
    ])
    answer_prompt = ChatPromptTemplate.from_messages([
        ("system", answer_text),
        MessagesPlaceholder("chat_history"),
        ("human", "{input}"),
    ])

    retrieve = RunnablePassthrough.assign(
        context=create_history_aware_retriever(model, retriever, condense_prompt),
    ).with_config(run_name="retrieve_documents")

    answer = (
        RunnablePassthrough.assign(context=lambda inputs: format_documents(inputs["context"]))
        | answer_prompt
        | model
        | StrOutputParser()
    ).with_config(run_name="stuff_documents")

    logger.debug("RAG chain assembled")
    return (retrieve | answer).with_config(run_name="rag_chain")
