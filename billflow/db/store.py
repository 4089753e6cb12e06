import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from billflow.core.errors import InvalidMonthKey, ValidationFailure
from billflow.db.models import EmailConfigRow, MonthlyData, UserState

logger = logging.getLogger(__name__)

MONTH_KEY_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}$")

# Marks a row whose payload could not be decoded
_UNREADABLE = object()

def is_valid_month_key(month_key: str) -> bool:
    return bool(MONTH_KEY_PATTERN.match(month_key or ""))

def validate_month_key(month_key: str) -> str:
    if not is_valid_month_key(month_key):
        raise InvalidMonthKey(month_key)
    return month_key

def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name}")

def _encode(value: Any) -> str:
    # NaN and Infinity are not JSON and could never be served back
    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"Value is not valid JSON: {e}") from e

def _decode(raw: str, where: str) -> Any:
    """
    Lenient read: legacy or corrupt payloads are tolerated.
    A row that fails to decode is reported as absent, never raised to the caller.
    """
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unreadable stored value at {where}: {e}")
        return _UNREADABLE

class TenantStore:
    """
    Key/value persistence scoped by tenant.

    Two namespaces: free-form settings keys and YYYY-MM monthly records,
    plus one email configuration object per tenant.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- settings -----------------------------------------------------------

    def get(self, tenant: str, key: str) -> Optional[Any]:
        row = self.db.get(UserState, (tenant, key))
        if row is None:
            return None
        value = _decode(row.value, f"user_state[{tenant}/{key}]")
        return None if value is _UNREADABLE else value

    def set(self, tenant: str, key: str, value: Any) -> None:
        self._put_setting(tenant, key, value)
        self.db.commit()

    def list_all(self, tenant: str) -> Dict[str, Any]:
        rows = self.db.query(UserState).filter(UserState.user_id == tenant).all()
        state = {}
        for row in rows:
            value = _decode(row.value, f"user_state[{tenant}/{row.key}]")
            if value is not _UNREADABLE:
                state[row.key] = value
        return state

    # --- monthly records ----------------------------------------------------

    def get_month(self, tenant: str, month_key: str) -> Optional[Any]:
        row = self.db.get(MonthlyData, (tenant, month_key))
        if row is None:
            return None
        value = _decode(row.data, f"monthly_data[{tenant}/{month_key}]")
        return None if value is _UNREADABLE else value

    def set_month(self, tenant: str, month_key: str, value: Any) -> None:
        self._put_month(tenant, month_key, value)
        self.db.commit()

    def delete_month(self, tenant: str, month_key: str) -> None:
        self.db.query(MonthlyData).filter(
            MonthlyData.user_id == tenant,
            MonthlyData.month_key == month_key,
        ).delete(synchronize_session=False)
        self.db.commit()

    def list_months(self, tenant: str) -> Dict[str, Any]:
        rows = (
            self.db.query(MonthlyData)
            .filter(MonthlyData.user_id == tenant)
            .order_by(MonthlyData.month_key.asc())
            .all()
        )
        months = {}
        for row in rows:
            value = _decode(row.data, f"monthly_data[{tenant}/{row.month_key}]")
            if value is not _UNREADABLE:
                months[row.month_key] = value
        return months

    # --- batch --------------------------------------------------------------

    def set_many(
        self,
        tenant: str,
        settings: Optional[Dict[str, Any]] = None,
        monthly: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Apply every write in one transaction. Any failure leaves nothing persisted."""
        try:
            for key, value in (settings or {}).items():
                self._put_setting(tenant, key, value)
            for month_key, value in (monthly or {}).items():
                self._put_month(tenant, month_key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- email configuration ------------------------------------------------

    def get_email_config(self, tenant: str) -> Optional[Dict[str, Any]]:
        row = self.db.get(EmailConfigRow, tenant)
        if row is None:
            return None
        config = _decode(row.config, f"email_config[{tenant}]")
        if config is _UNREADABLE or not isinstance(config, dict):
            return None
        return config

    def set_email_config(self, tenant: str, config: Dict[str, Any]) -> None:
        self._upsert(EmailConfigRow, ["user_id"], {
            "user_id": tenant,
            "config": _encode(config),
            "updated_at": int(time.time()),
        })
        self.db.commit()

    # --- helpers ------------------------------------------------------------

    def _upsert(self, table: Any, index_elements: List[str], values: Dict[str, Any]) -> None:
        """Single-statement insert-or-replace, so concurrent writers of one key never collide."""
        dialect_name = self.db.get_bind().dialect.name
        if dialect_name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        else:
            from sqlalchemy.dialects.sqlite import insert as dialect_insert

        stmt = dialect_insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=index_elements,
            set_={col: getattr(stmt.excluded, col) for col in values if col not in index_elements},
        )
        self.db.execute(stmt)

    def _put_setting(self, tenant: str, key: str, value: Any) -> None:
        self._upsert(UserState, ["user_id", "key"], {
            "user_id": tenant,
            "key": key,
            "value": _encode(value),
            "updated_at": int(time.time()),
        })

    def _put_month(self, tenant: str, month_key: str, value: Any) -> None:
        validate_month_key(month_key)
        self._upsert(MonthlyData, ["user_id", "month_key"], {
            "user_id": tenant,
            "month_key": month_key,
            "data": _encode(value),
            "updated_at": int(time.time()),
        })
