# whatjsx/app/main.py
from __future__ import annotations

"""
FastAPI-gateway för createElement → JSX-konvertering.

Kör:
    uvicorn whatjsx.app.main:app --reload
Worker:
    celery -A whatjsx.tasks.convert worker --loglevel=info
"""

import logging
from typing import Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# whatjsx.tasks laddar .env vid import, före settings läses
from whatjsx import __version__
from .convert import router as convert_router

# ── Logging ───────────────────────────────────────────────────────────────
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("whatjsx")

# ── FastAPI + CORS ────────────────────────────────────────────────────────
app = FastAPI(title="WhatJSX", version=__version__)
app.add_middleware(
  CORSMiddleware,
  allow_origins=["*"],      # begränsa i prod
  allow_methods=["*"],
  allow_headers=["*"],
)

app.include_router(convert_router)

# ── Healthcheck ───────────────────────────────────────────────────────────
@app.get("/healthz")
async def healthz() -> Dict[str, str]:
  return {"status": "ok"}

# ── Logga alla rutter vid uppstart (hjälper felsöka 404) ──────────────────
@app.on_event("startup")
async def _log_routes() -> None:  # pragma: no cover
  lines = []
  for r in app.router.routes:
    methods = ",".join(sorted(getattr(r, "methods", []) or []))
    path = getattr(r, "path", "")
    name = getattr(r, "name", "")
    lines.append(f"{methods:15s} {path:40s} → {name}")
  logger.info("Registrerade rutter:\n" + "\n".join(lines))
