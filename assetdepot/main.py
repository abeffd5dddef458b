import time
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from assetdepot.core.config import settings
from assetdepot.core.logging import setup_logging
from assetdepot.api.router import api_router
from assetdepot.core.db import init_models
from assetdepot.modules.assets.hooks import CREATE, REMOVE, publish_events
from assetdepot.modules.assets.router import hooks
from assetdepot.platform.provider_registry import registry


setup_logging()
app = FastAPI(title=settings.APP_NAME)

# attach request_id to log records (simple)
import logging
from contextvars import ContextVar
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
old_factory = logging.getLogRecordFactory()
def record_factory(*args, **kwargs):
    record = old_factory(*args, **kwargs)
    record.request_id = request_id_ctx.get()
    return record
logging.setLogRecordFactory(record_factory)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    request_id_ctx.set(rid)
    response = await call_next(request)
    return response


logger = logging.getLogger(__name__)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    formatted_process_time = f"{process_time:.2f}ms"

    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {formatted_process_time}"
    )

    return response

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "An internal server error occurred."},
    )


# lifecycle events go out on the configured bus
hooks.use(CREATE, publish_events(registry.event_bus(), CREATE))
hooks.use(REMOVE, publish_events(registry.event_bus(), REMOVE))

@app.on_event("startup")
async def on_startup():
    await init_models()
    logger.info("Asset transports: %s (default=%s)", ", ".join(registry.transports().names()), registry.transports().default_name())


app.include_router(api_router, prefix=settings.API_PREFIX)
