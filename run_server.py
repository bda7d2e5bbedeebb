#!/usr/bin/env python3
"""Long-lived hello-world service: FastAPI + uvicorn, warm hand-off on shutdown.

The app is stateless. When the platform sends SIGTERM the instance calls its
own public URL so a replacement is already warm, then exits.
"""

from config import ensure_root_path, DEFAULT_PORT, PORT_FROM_ENV, SERVER_HOST, SERVER_PORT
ensure_root_path()

from utils.logging_config import configure_logging, get_logger
configure_logging()

from contextlib import asynccontextmanager

from fastapi import FastAPI

from state import register_signal_handlers, shutdown

from app import router

_log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    register_signal_handlers()
    yield
    shutdown()


app = FastAPI(title="Warm Handoff", lifespan=lifespan)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    if not PORT_FROM_ENV:
        _log.info("defaulting_port", extra={"port": DEFAULT_PORT})
    _log.info("listening", extra={"host": SERVER_HOST, "port": SERVER_PORT})
    uvicorn.run(
        "run_server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_config=None,
    )
