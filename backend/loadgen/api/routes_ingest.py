from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from loadgen.deps import get_sink_state
from loadgen.models.domain import PAYLOAD_ADAPTER, SinkStats
from loadgen.services.sink import SinkState

router = APIRouter()


@router.post("/data")
async def ingest(request: Request, state: SinkState = Depends(get_sink_state)):
    """
    Accepts one payload in any of the four wire shapes.
    The shape is resolved from `device_type`; anything else is a 422.
    """
    body = await request.body()
    try:
        payload = PAYLOAD_ADAPTER.validate_json(body)
    except ValidationError as e:
        state.reject()
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False, include_input=False))

    if state.delay_ms > 0:
        await asyncio.sleep(state.delay_ms / 1000.0)

    if state.should_fail():
        raise HTTPException(status_code=500, detail="forced error")

    state.accept(payload.shape)
    return {"status": "ok", "shape": int(payload.shape)}


@router.get("/stats", response_model=SinkStats)
async def stats(state: SinkState = Depends(get_sink_state)) -> SinkStats:
    return state.stats()
