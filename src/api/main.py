"""
FastAPI Application - Knowledge-Base Chat Proxy

Main entry point for the REST API.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import time
import logging
from typing import AsyncGenerator

from dotenv import load_dotenv

from .dependencies import get_retrieval_service, get_settings
from .schemas import ErrorResponse, HealthResponse
from ..rag.errors import RetrievalError

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Version
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan events.

    Runs on startup and shutdown.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Knowledge-Base Chat API v{VERSION}")
    logger.info("=" * 60)

    settings = get_settings()
    if settings.api_key_present:
        logger.info(f"✅ LLM configured: {settings.llm_provider}/{settings.llm_model}")
    else:
        logger.warning("⚠️  OPENAI_API_KEY not configured")

    retrieval = get_retrieval_service()
    rag_config = retrieval.current_config()
    if rag_config.enabled and rag_config.warm_up:
        try:
            index = await retrieval.warm_up()
            logger.info(f"✅ Embedding index ready: {index.size} chunks")
        except RetrievalError as e:
            logger.error(f"❌ Embedding index warm-up failed: {e}")

    logger.info("=" * 60)

    yield

    # Shutdown
    logger.info("Shutting down API...")


# Create FastAPI app
app = FastAPI(
    title="Knowledge-Base Chat API",
    description="""
    Chat proxy to a large-language-model API with retrieval-augmented generation.

    Each question is matched against a local knowledge base; the most similar
    excerpts are injected into the prompt before the chat model is called.

    ## Features
    - `POST /api/chat` with `{prompt}` or `{systemPrompt, messages}`
    - In-memory embedding index, rebuilt when the embedding model changes
    - Graceful fallback to plain chat when retrieval is unavailable
    """,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests"""
    start_time = time.time()

    # Log request
    logger.info(f"→ {request.method} {request.url.path}")

    # Process request
    response = await call_next(request)

    # Log response
    duration = (time.time() - start_time) * 1000
    logger.info(f"← {response.status_code} ({duration:.0f}ms)")

    return response


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def chat_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Keep the chat endpoint's {error} body for methods it does not serve"""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED and request.url.path == "/api/chat":
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"error": "Method not allowed"},
            headers=exc.headers
        )
    return await http_exception_handler(request, exc)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            detail="Internal server error. Please try again later.",
            error_code="INTERNAL_ERROR"
        ).model_dump(mode='json')
    )


@app.get("/", tags=["Root"])
async def root():
    """API info"""
    return {
        "name": "Knowledge-Base Chat API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
        "chat": "/api/chat"
    }


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns service status, LLM configuration and embedding index status.
    """
    settings = get_settings()
    llm_status = "configured" if settings.api_key_present else "not_configured"

    knowledge_base = {}
    try:
        knowledge_base = get_retrieval_service().stats()
    except Exception as e:
        logger.error(f"Health check retrieval error: {e}")
        knowledge_base = {"error": str(e)}

    # Always healthy while the process is up; the details say what is missing
    return HealthResponse(
        status="healthy",
        llm=llm_status,
        knowledge_base=knowledge_base,
        version=VERSION
    )


# Import routers
from .routers import chat, index

# Chat proxy router
app.include_router(chat.router, prefix="/api", tags=["Chat"])

# Embedding index management
app.include_router(index.router, prefix="/api/v1", tags=["Index"])


if __name__ == "__main__":
    import uvicorn
    import os

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info"
    )
