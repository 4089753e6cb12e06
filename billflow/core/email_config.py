import logging
from typing import Any, Dict, Optional

from billflow.core.errors import EmailConfigError
from billflow.db.store import TenantStore

logger = logging.getLogger(__name__)

SECRET_FIELDS = ("mailgunApiKey", "sendgridApiKey", "resendApiKey", "smtpPass")

MASK = "••••••••••••"
# Any incoming secret containing this fragment is treated as an unchanged masked value
MASK_FRAGMENT = "••••"

def mask_config(config: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Redact secrets to their first four characters so users can tell which key is set."""
    if not config:
        return None
    masked = dict(config)
    for field in SECRET_FIELDS:
        value = masked.get(field)
        if value:
            masked[field] = str(value)[:4] + MASK
    return masked

def merge_config(existing: Optional[Dict[str, Any]], incoming: Dict[str, Any]) -> Dict[str, Any]:
    existing = existing or {}
    merged = {**existing, **incoming}
    for field in SECRET_FIELDS:
        value = incoming.get(field)
        if value and MASK_FRAGMENT in str(value):
            # Round-tripped masked value: keep the real secret
            if field in existing:
                merged[field] = existing[field]
            else:
                merged.pop(field, None)
    return merged

class EmailConfigManager:
    def __init__(self, store: TenantStore):
        self.store = store

    def load(self, tenant: str) -> Optional[Dict[str, Any]]:
        return self.store.get_email_config(tenant)

    def get_masked(self, tenant: str) -> Optional[Dict[str, Any]]:
        return mask_config(self.load(tenant))

    def save(self, tenant: str, incoming: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(incoming, dict) or not incoming.get("provider"):
            raise EmailConfigError("provider required")
        merged = merge_config(self.load(tenant), incoming)
        self.store.set_email_config(tenant, merged)
        logger.info(f"Email config saved for {tenant} (provider={merged.get('provider')})")
        return merged
