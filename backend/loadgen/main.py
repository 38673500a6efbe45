# main.py
from __future__ import annotations

from fastapi import FastAPI

from loadgen.api.routes_health import router as health_router
from loadgen.api.routes_ingest import router as ingest_router


# ============================================================
# FASTAPI APP SETUP (local ingest sink)
# ============================================================

app = FastAPI(
    title="Inverter Ingest Sink",
    version="0.1.0",
    description="Local receiver for the multi-format inverter load generator.",
)

app.include_router(health_router)
app.include_router(ingest_router, prefix="/api")


# ============================================================
# LOCAL RUN INSTRUCTIONS
# ============================================================
# Run:
#   inverter-loadgen sink --port 8080
#   (or) uvicorn loadgen.main:app --port 8080
#
# Then point the generator at it:
#   inverter-loadgen run --endpoint http://localhost:8080/api/data --rate 50 --duration 10
