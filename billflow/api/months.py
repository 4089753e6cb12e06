from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from typing import Any
import logging

from billflow.core.middleware import get_tenant_id
from billflow.db.session import get_db
from billflow.db.store import TenantStore, validate_month_key

router = APIRouter()
logger = logging.getLogger(__name__)

def month_key_param(key: str) -> str:
    # Raises InvalidMonthKey (400) before the store is touched
    return validate_month_key(key)

@router.get("/months")
def read_months(tenant_id: str = Depends(get_tenant_id), db: Session = Depends(get_db)):
    return TenantStore(db).list_months(tenant_id)

@router.get("/months/{key}")
def read_month(
    key: str = Depends(month_key_param),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    data = TenantStore(db).get_month(tenant_id, key)
    return {} if data is None else data

@router.put("/months/{key}")
def write_month(
    key: str = Depends(month_key_param),
    data: Any = Body(None),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    TenantStore(db).set_month(tenant_id, key, data)
    return {"ok": True}

@router.delete("/months/{key}")
def delete_month(
    key: str = Depends(month_key_param),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    TenantStore(db).delete_month(tenant_id, key)
    logger.info(f"Month {key} deleted for {tenant_id}")
    return {"ok": True}
