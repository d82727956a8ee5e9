"""FastAPI application entrypoint for the docchat RAG API."""

from fastapi import FastAPI
from .routes import router

app = FastAPI(title="docchat RAG API", version="0.1.0")
app.include_router(router)


@app.get("/health")
def health_check() -> dict:
	"""Basic liveness check used by monitors and CI."""
	return {"status": "ok"}
