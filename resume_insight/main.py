import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import chat, events, resumes, upload
from .config import get_settings
from .exceptions import PipelineError
from .utils.log_config import configure_logging

configure_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger("api")

app = FastAPI(
    title="Resume Insight",
    description="Resume ingestion, fit scoring and a recruiter chat assistant.",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    if exc.status_code >= 500:
        logger.error(f"[{exc.correlation_id or '-'}] {request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "errorType": exc.error_code,
            "message": exc.message,
            "statusCode": exc.status_code,
            "correlationId": exc.correlation_id,
        },
    )


# --- Mount Routers ---
api_prefix = "/api/v1"
app.include_router(events.router, prefix=api_prefix, tags=["Pipeline"])
app.include_router(upload.router, prefix=api_prefix, tags=["Pipeline"])
app.include_router(resumes.router, prefix=api_prefix, tags=["Resumes"])
app.include_router(chat.router, prefix=api_prefix, tags=["Chat"])


@app.get(f"{api_prefix}/health", tags=["System"])
def health_check():
    return {"status": "ok", "message": "API is running"}
