from __future__ import annotations

from datetime import datetime
from fastapi import APIRouter, Depends

from loadgen.deps import get_sink_state
from loadgen.models.domain import HealthResponse
from loadgen.services.sink import SinkState

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
async def health(state: SinkState = Depends(get_sink_state)) -> HealthResponse:
    stats = state.stats()
    return HealthResponse(
        status="ok",
        ts=datetime.now().isoformat(),
        uptime_s=round(state.uptime_s, 3),
        accepted=stats.accepted,
        rejected=stats.rejected,
    )
