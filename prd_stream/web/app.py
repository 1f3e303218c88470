"""App module.

This module belongs to `prd_stream.web` in the prd-stream codebase.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from prd_stream.settings import get_engine_settings
from prd_stream.storage import build_store
from prd_stream.web.api.document_flow import router as document_router

settings = get_engine_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PRD Stream Editor")
store = build_store(settings.store_backend, settings.data_dir)
app.include_router(document_router)

logger.info("snapshot store: %s", type(store).__name__)
