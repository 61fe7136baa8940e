from pydantic import BaseModel, Field

from enums.webhook_result_status import WebhookResultStatus


class LineItemManifestEntryDTO(BaseModel):
    """One line of the processor-side receipt."""
    name: str
    unit_amount: int = Field(..., gt=0)  # Minor units (cents)
    quantity: int = Field(..., ge=1)


class PaymentSessionDTO(BaseModel):
    session_id: str
    url: str | None = None


class CheckoutSessionDTO(BaseModel):
    """Redirect handle returned to the storefront."""
    order_id: int
    session_id: str
    url: str | None = None


class WebhookResultDTO(BaseModel):
    status: WebhookResultStatus
    event_type: str | None = None
    order_id: int | None = None
    detail: str | None = None
