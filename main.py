import argparse
import logging
import sys

import uvicorn

from docchat.utils.logger import setup_logging
from docchat.config import ChatSettings
from docchat.ingestion.ingestor import DocumentIngestor
from docchat.utils.llm_factory import load_embeddings_model

CONFIG_PATH = "cfg/config.json"

# Initialize centralized logging system
setup_logging(CONFIG_PATH)

# Silence external library noise
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("langchain_google_genai").setLevel(logging.WARNING)
logging.getLogger("chromadb").setLevel(logging.ERROR)

logger = logging.getLogger("Orchestrator")


def main(argv=None) -> int:
    """CLI entrypoint: run the chat API or ingest documents for a chat."""
    parser = argparse.ArgumentParser(description="docchat RAG service")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    # --- COMMAND: SERVE ---
    parser_serve = subparsers.add_parser("serve", help="Run the chat API")
    parser_serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser_serve.add_argument("--port", type=int, default=8000, help="Bind port")

    # --- COMMAND: INGEST ---
    parser_ingest = subparsers.add_parser("ingest", help="Chunk and embed documents for a chat")
    parser_ingest.add_argument("--chat-id", required=True, help="Conversation the documents belong to")
    parser_ingest.add_argument("files", nargs="+", help="Text, Markdown or PDF files")

    args = parser.parse_args(argv)

    if args.command == "serve":
        logger.info(f"🚀 Serving docchat on http://{args.host}:{args.port}")
        uvicorn.run("docchat.api.main:app", host=args.host, port=args.port)
        return 0

    if args.command == "ingest":
        settings = ChatSettings.from_config(CONFIG_PATH)
        ingestor = DocumentIngestor(settings, load_embeddings_model(settings))
        try:
            count = ingestor.ingest(args.files, chat_id=args.chat_id)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Ingestion failed: {e}")
            return 1
        logger.info(f"✅ Ingested {count} chunks into '{settings.vector_store}'")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
