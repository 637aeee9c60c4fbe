import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .errors import ServiceError
from .routers import envelopes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Envelope composition API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed in %s: %s", request.method, request.url.path, exc.context(), exc.message)
    body = {"detail": exc.message}
    if exc.details is not None:
        body["provider"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


app.include_router(envelopes.router, prefix="/api/envelopes", tags=["envelopes"])


@app.get("/")
def root():
    return {"ok": True, "service": config.SERVICE_NAME}


@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat(), "service": config.SERVICE_NAME}
