from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union

DEFAULT_ACCENT_COLOR = "#a8e063"
DEFAULT_FROM_NAME = "BillFlow"

PAY_ZELLE = "zelle"
PAY_VENMO = "venmo"
PAY_MANUAL = "manual"
PAY_NONE = "none"

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class BillItem(CamelModel):
    name: str
    amount: float = Field(..., ge=0)

class BillSummary(CamelModel):
    greeting: Optional[str] = None
    person_name: str = ""
    accent_color: Optional[str] = None
    month_label: str = ""
    bills: List[BillItem] = Field(default_factory=list)
    # Trusted as given; only derived from the items when omitted
    total: Optional[float] = Field(None, ge=0)
    # zelle | venmo | manual | none, anything else renders as "none"
    pay_method: Optional[str] = PAY_NONE
    pay_id: Optional[str] = None
    from_name: Optional[str] = None

class SendBillRequest(BillSummary):
    to: Optional[str] = None

class RenderedEmail(BaseModel):
    html: str
    text: str

class EmailProviderConfig(CamelModel):
    """Typed view over the stored provider configuration; unknown keys are kept."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    provider: Optional[str] = None
    from_name: Optional[str] = None
    from_email: Optional[str] = None

    mailgun_api_key: Optional[str] = None
    mailgun_domain: Optional[str] = None
    mailgun_region: Optional[str] = None

    sendgrid_api_key: Optional[str] = None

    resend_api_key: Optional[str] = None

    smtp_host: Optional[str] = None
    smtp_port: Optional[Union[int, str]] = None
    smtp_secure: Optional[Union[bool, str]] = None
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None

    @property
    def sender_name(self) -> str:
        return self.from_name or DEFAULT_FROM_NAME
