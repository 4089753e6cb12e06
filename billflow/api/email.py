from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Any, Dict
import logging

from billflow.core.email_config import EmailConfigManager
from billflow.core.email_template import build_email
from billflow.core.middleware import get_tenant_id
from billflow.core.providers import send_email
from billflow.db.session import get_db
from billflow.db.store import TenantStore
from billflow.schemas.email import BillItem, BillSummary, SendBillRequest, DEFAULT_FROM_NAME, PAY_NONE

router = APIRouter(prefix="/email")
logger = logging.getLogger(__name__)

TEST_EMAIL_SUBJECT = "BillFlow - Test Email"

# Fixed sample content for the test email
SAMPLE_SUMMARY = dict(
    greeting="Hey there,",
    person_name="You",
    accent_color="#a8e063",
    month_label="Test Email",
    bills=[BillItem(name="Electric", amount=85.00), BillItem(name="Internet", amount=59.99)],
    total=144.99,
    pay_method=PAY_NONE,
)

def get_config_manager(db: Session = Depends(get_db)) -> EmailConfigManager:
    return EmailConfigManager(TenantStore(db))

@router.get("/config")
def read_email_config(
    tenant_id: str = Depends(get_tenant_id),
    manager: EmailConfigManager = Depends(get_config_manager),
):
    """Stored provider config with secrets redacted, or null."""
    return manager.get_masked(tenant_id)

@router.put("/config")
def save_email_config(
    body: Dict[str, Any] = Body(...),
    tenant_id: str = Depends(get_tenant_id),
    manager: EmailConfigManager = Depends(get_config_manager),
):
    manager.save(tenant_id, body)
    return {"ok": True}

@router.post("/test")
async def send_test_email(
    tenant_id: str = Depends(get_tenant_id),
    manager: EmailConfigManager = Depends(get_config_manager),
):
    config = manager.load(tenant_id)
    if not config:
        raise HTTPException(status_code=400, detail="No email config saved")

    sender_name = config.get("fromName") or DEFAULT_FROM_NAME
    rendered = build_email(BillSummary(**SAMPLE_SUMMARY, from_name=sender_name))
    await send_email(config, config.get("fromEmail"), TEST_EMAIL_SUBJECT, rendered.html, rendered.text)
    return {"ok": True, "message": f"Test email sent to {config.get('fromEmail')}"}

@router.post("/send")
async def send_bill_summary(
    request: SendBillRequest,
    tenant_id: str = Depends(get_tenant_id),
    manager: EmailConfigManager = Depends(get_config_manager),
):
    if not request.to:
        raise HTTPException(status_code=400, detail="recipient (to) required")

    config = manager.load(tenant_id)
    if not config:
        raise HTTPException(
            status_code=400,
            detail="No email provider configured. Set it up in Settings -> Email.",
        )

    summary = request.model_copy(update={"from_name": config.get("fromName") or DEFAULT_FROM_NAME})
    rendered = build_email(summary)
    subject = f"Bills for {request.month_label}"
    await send_email(config, request.to, subject, rendered.html, rendered.text)
    logger.info(f"Bill summary for {request.month_label} sent by {tenant_id} to {request.to}")
    return {"ok": True}
