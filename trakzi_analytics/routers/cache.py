"""
Cache Router
Explicit invalidation plus the two data-changing events that imply it:
CSV import and logout.
"""
import io
import logging
from typing import Dict, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import BaseModel

from trakzi_analytics.db.store import RecordStore, RecordStoreCorrupt, get_record_store, load_transactions_csv
from trakzi_analytics.models.transaction import Transaction
from trakzi_analytics.routers.deps import get_invalidation_signal
from trakzi_analytics.utils.cache import SCOPE_ALL, VALID_SCOPES, InvalidationSignal

router = APIRouter()
logger = logging.getLogger(__name__)


def _parse_csv_body(raw: bytes) -> Tuple[Transaction, ...]:
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise RecordStoreCorrupt(f"CSV is not valid UTF-8: {e}") from e
    return load_transactions_csv(io.StringIO(text))


class InvalidateRequest(BaseModel):
    scope: str = SCOPE_ALL


@router.post("/cache/invalidate", status_code=202)
def invalidate_cache(
    body: InvalidateRequest,
    background_tasks: BackgroundTasks,
    signal: InvalidationSignal = Depends(get_invalidation_signal),
) -> Dict:
    if body.scope not in VALID_SCOPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid scope '{body.scope}'. Expected one of: {', '.join(VALID_SCOPES)}",
        )
    background_tasks.add_task(signal.invalidate, body.scope)
    return {"status": "accepted", "scope": body.scope}


@router.post("/imports/csv", status_code=201)
async def import_csv(
    request: Request,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_record_store),
    signal: InvalidationSignal = Depends(get_invalidation_signal),
) -> Dict:
    """
    Replace the transaction set with a CSV export sent as the raw request body.
    Receipts and categories carry over from the current snapshot.
    """
    raw = await request.body()
    try:
        transactions = _parse_csv_body(raw)
    except RecordStoreCorrupt as e:
        logger.warning(f"Rejected CSV import: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    receipts = store.snapshot().receipts if store.is_loaded else ()
    snapshot = store.replace(transactions, receipts)
    background_tasks.add_task(signal.invalidate, SCOPE_ALL)
    return {
        "message": "Import completed",
        "imported": len(transactions),
        "snapshot_version": snapshot.version,
    }


@router.post("/session/logout")
def logout(
    background_tasks: BackgroundTasks,
    signal: InvalidationSignal = Depends(get_invalidation_signal),
) -> Dict:
    # Invalidation runs after the response; a failing collaborator cannot block logout
    background_tasks.add_task(signal.invalidate, SCOPE_ALL)
    return {"message": "Logged out"}
