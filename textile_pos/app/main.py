import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from textile_pos.app.api.v1.api import api_router
from textile_pos.app.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Schema is managed by Alembic: run `alembic upgrade head` before serving
app = FastAPI(title="T.Gopi Textiles POS")

# ─── CORS: back-office frontend origins ──────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Accept", "X-Terminal-Id"],
)

app.include_router(api_router)
