from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import logging
import time

from billflow.core.middleware import get_tenant_id
from billflow.db.session import get_db
from billflow.db.store import TenantStore
from billflow.schemas.state import ExportDocument, ImportRequest

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/export")
def export_backup(tenant_id: str = Depends(get_tenant_id), db: Session = Depends(get_db)):
    """Full settings and every month as one downloadable JSON document."""
    store = TenantStore(db)
    document = ExportDocument(
        user=tenant_id,
        exported_at=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        state=store.list_all(tenant_id),
        monthly=store.list_months(tenant_id),
    )
    filename = f"billflow-backup-{tenant_id}-{int(time.time() * 1000)}.json"
    logger.info(f"Export generated for {tenant_id}: {len(document.state)} key(s), {len(document.monthly)} month(s)")
    return JSONResponse(
        content=document.model_dump(by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.post("/import")
def import_backup(
    payload: ImportRequest,
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    # All or nothing: a bad month key rolls back the settings written before it
    TenantStore(db).set_many(tenant_id, settings=payload.state, monthly=payload.monthly)
    logger.info(
        f"Import applied for {tenant_id}: "
        f"{len(payload.state or {})} key(s), {len(payload.monthly or {})} month(s)"
    )
    return {"ok": True}
