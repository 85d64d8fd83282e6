from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from apps.api.api.schemas import Envelope

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Envelope[dict[str, str]], summary="Public health probe")
async def health() -> Envelope[dict[str, str]]:
    return Envelope(data={"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})
