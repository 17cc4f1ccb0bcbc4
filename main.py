"""
Campus Assistant API - Main Server (FastAPI)
Features:
- Multilingual document ingestion and keyword search
- Escalation analysis with human handoff queue
- Conversation analytics
- JWT-protected admin surface
- Log anonymization
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from campus_assistant.api import admin, chat
from campus_assistant.config import Config
from campus_assistant.core.assistant import CampusAssistant
from campus_assistant.errors import CampusAssistantError
from campus_assistant.utils.logging_utils import anonymize_text, get_logger

logger = get_logger()


def create_app(assistant: Optional[CampusAssistant] = None) -> FastAPI:
    """Build the API around one CampusAssistant instance."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"[Startup] Campus Assistant starting (env={Config.ENVIRONMENT})")
        # Created per lifespan; shut down on exit
        app.state.executor = ThreadPoolExecutor(
            max_workers=Config.ENGINE_MAX_WORKERS, thread_name_prefix="campus-engine"
        )
        try:
            yield
        finally:
            app.state.executor.shutdown(wait=False)
            app.state.executor = None
            logger.info("[Shutdown] Campus Assistant stopped")

    app = FastAPI(
        title="Campus Assistant",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if Config.ENVIRONMENT != "production" else None,
    )
    app.state.assistant = assistant or CampusAssistant()

    app.include_router(chat.router, prefix="/api", tags=["chat"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.exception_handler(CampusAssistantError)
    async def campus_error_handler(request: Request, exc: CampusAssistantError):
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(f"[API] {request.method} {request.url.path} -> {exc.code}: {anonymize_text(exc.message)}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_error",
                "message": "An internal error occurred. Please try again later.",
            },
        )

    @app.get("/health", tags=["health"])
    async def health():
        state = app.state.assistant
        return {
            "status": "ok",
            "documents": len(state.store),
            "index_health": state.index_manager.get_status()["health"],
            "queue": state.queue_status(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=5000, reload=Config.ENVIRONMENT == "development")
