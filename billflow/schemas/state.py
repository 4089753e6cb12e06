from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional

class HealthResponse(BaseModel):
    ok: bool = True
    user: str
    ts: int  # epoch milliseconds

class ImportRequest(BaseModel):
    # Accepts a full export document; "user" and "exportedAt" are ignored
    model_config = ConfigDict(extra="ignore")

    state: Optional[Dict[str, Any]] = None
    monthly: Optional[Dict[str, Any]] = None

class ExportDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: str
    exported_at: str = Field(..., alias="exportedAt")
    state: Dict[str, Any] = Field(default_factory=dict)
    monthly: Dict[str, Any] = Field(default_factory=dict)
