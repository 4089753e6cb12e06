from fastapi import APIRouter, Depends
import time

from billflow.core.middleware import get_tenant_id
from billflow.schemas.state import HealthResponse

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
async def health(tenant_id: str = Depends(get_tenant_id)):
    return HealthResponse(user=tenant_id, ts=int(time.time() * 1000))
