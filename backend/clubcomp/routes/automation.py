from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from clubcomp.routes.deps import get_store
from clubcomp.services.automation import run_automation_sweep
from clubcomp.services.store import SqlModelStore

router = APIRouter()


class SweepRequest(BaseModel):
    now: Optional[datetime] = None


class SweepFailureResponse(BaseModel):
    kind: str
    entity_id: int
    error: str


class SweepResponse(BaseModel):
    started: List[int]
    advanced: List[int]
    activated: List[int]
    failed: List[SweepFailureResponse]


@router.post("/automation/sweep", response_model=SweepResponse)
def sweep(body: Optional[SweepRequest] = None, store: SqlModelStore = Depends(get_store)):
    """One automation pass. `now` may be supplied to replay a specific instant."""
    now = body.now if body and body.now else None
    if now is not None and now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    report = run_automation_sweep(store, now)
    return SweepResponse(
        started=report.started,
        advanced=report.advanced,
        activated=report.activated,
        failed=[SweepFailureResponse(kind=f.kind, entity_id=f.entity_id, error=f.error) for f in report.failed],
    )
