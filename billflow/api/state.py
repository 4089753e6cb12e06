from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Any, Dict
import logging

from billflow.core.middleware import get_tenant_id
from billflow.db.session import get_db
from billflow.db.store import TenantStore

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/state")
def read_state(tenant_id: str = Depends(get_tenant_id), db: Session = Depends(get_db)) -> Dict[str, Any]:
    return TenantStore(db).list_all(tenant_id)

@router.put("/state")
def replace_state(
    body: Dict[str, Any] = Body(...),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    """Write every key of the body in one transaction."""
    TenantStore(db).set_many(tenant_id, settings=body)
    logger.info(f"State saved for {tenant_id}: {len(body)} key(s)")
    return {"ok": True}

@router.patch("/state/{key}")
def patch_state_key(
    key: str,
    value: Any = Body(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    TenantStore(db).set(tenant_id, key, value)
    return {"ok": True}
