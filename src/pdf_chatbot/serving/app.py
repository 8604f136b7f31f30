"""FastAPI application exposing PDF ingestion and streamed question answering."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from pdf_chatbot.config import settings
from pdf_chatbot.errors import NoFileError, PdfChatbotError, UploadTooLargeError
from pdf_chatbot.ingestion.pipeline import IngestionPipeline
from pdf_chatbot.retrieval.base import VectorStoreBase
from pdf_chatbot.retrieval.pipeline import AnswerPipeline
from pdf_chatbot.serving.deps import get_answer_pipeline, get_ingestion_pipeline, get_vector_store
from pdf_chatbot.serving.sse import SSE_HEADERS, to_sse

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.log_level) -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ANN201
    configure_logging()
    logger.info("PDF chatbot starting (namespace=%r)", settings.namespace)
    yield


app = FastAPI(
    title="PDF Chatbot API",
    version="0.1.0",
    description="Upload a PDF, then ask questions answered from its content.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request / Response schemas ────────────────────────────────────────
class UploadResponse(BaseModel):
    """Result of a successful PDF ingestion."""

    message: str
    chunks: int
    logs: list[str] = []


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
    logs: list[str] = []


@app.exception_handler(PdfChatbotError)
async def handle_app_error(request: Request, exc: PdfChatbotError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error=exc.message, logs=exc.logs)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(store: VectorStoreBase = Depends(get_vector_store)) -> JSONResponse:
    """Readiness probe; 503 while the vector store is unreachable."""
    if await run_in_threadpool(store.health_check):
        return JSONResponse(status_code=200, content={"status": "ready"})
    return JSONResponse(status_code=503, content={"status": "unavailable"})


@app.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def upload(
    file: UploadFile | None = File(None),
    max_length: int | None = Query(None, ge=1, description="Chunk size override"),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> UploadResponse:
    """Extract, chunk, embed and index an uploaded PDF."""
    if file is None:
        raise NoFileError("No file uploaded", logs=["No file uploaded."])

    data = await file.read(settings.max_upload_bytes + 1)
    await file.close()
    if len(data) > settings.max_upload_bytes:
        raise UploadTooLargeError(
            f"File exceeds the {settings.max_upload_bytes} byte upload limit",
            logs=[f"File uploaded: {file.filename}"],
        )

    summary = await pipeline.ingest(data, filename=file.filename, max_length=max_length)
    return UploadResponse(
        message="PDF processed successfully",
        chunks=summary.chunks,
        logs=summary.logs,
    )


@app.get("/chat")
async def chat(
    question: str | None = Query(None),
    pipeline: AnswerPipeline = Depends(get_answer_pipeline),
) -> StreamingResponse:
    """Stream an answer to *question* as Server-Sent Events."""
    events = pipeline.stream(question)
    return StreamingResponse(
        to_sse(events),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
