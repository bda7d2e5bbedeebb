#!/usr/bin/env python3
"""Request handler: placeholder hello-world responder."""

import uuid

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from utils.logging_config import get_logger, set_correlation_id

_log = get_logger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def hello_world(request: Request) -> str:
    set_correlation_id(str(uuid.uuid4())[:8])
    _log.info("request_start", extra={"path": request.url.path})
    return "hello world"
