import os
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import metrics
from .pipeline import generate_router
from .pipeline.routes import REQUIRED_MESSAGE, get_service

load_dotenv()

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Newscast worker starting up...")
    get_service()
    yield
    logger.info("Newscast worker shutting down...")


app = FastAPI(title="Newscast", lifespan=lifespan)
app.include_router(generate_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same 400 envelope as a blank businessData."""
    logger.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": REQUIRED_MESSAGE})


@app.get("/health")
def health_check():
    """Verify worker is running and env vars are configured."""
    return {
        "status": "ok",
        "openai_key_set": bool(os.environ.get("OPENAI_API_KEY")),
        "replicate_token_set": bool(os.environ.get("REPLICATE_API_TOKEN")),
        "supabase_url_set": bool(os.environ.get("SUPABASE_URL")),
    }


@app.get("/metrics")
def metrics_endpoint():
    """Return a snapshot of all worker metrics."""
    return metrics.get_snapshot()


def run():
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run("newscast.main:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
