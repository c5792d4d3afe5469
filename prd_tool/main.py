"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from prd_tool.api import router as api_router
from prd_tool.core.errors import PrdToolError
from prd_tool.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="PRD Tool",
    description="AI-assisted PRD authoring: chat turns, PRD updates and version history",
    version="0.1.0",
)


@app.exception_handler(PrdToolError)
async def prd_tool_error_handler(request: Request, exc: PrdToolError) -> JSONResponse:
    """Render core errors as {"message", "code"}."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code},
    )


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
