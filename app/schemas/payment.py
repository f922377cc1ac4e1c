from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

REQUIRED_PAYMENT_FIELDS = ("amount", "email", "firstName", "lastName", "plan")


def is_blank(value: Any) -> bool:
    """Falsy in the JSON sense: null, false, 0, NaN or "". Empty lists and objects count as present."""
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or value != value
    return False


class PaymentRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    amount: Optional[Any] = None
    email: Optional[Any] = None
    firstName: Optional[Any] = None
    lastName: Optional[Any] = None
    plan: Optional[Any] = None

    def missing_fields(self) -> List[str]:
        """Required fields that are absent or blank"""
        return [name for name in REQUIRED_PAYMENT_FIELDS if is_blank(getattr(self, name))]


class PaymentInitResponse(BaseModel):
    success: bool = True
    message: str = "Payment initialized successfully"
    data: Dict[str, Any]


class VerifyResponse(BaseModel):
    success: bool = True
    data: Any


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    tx_ref: Optional[Any] = None
    status: Optional[Any] = None


class WebhookAck(BaseModel):
    success: bool = True
    message: str = "Webhook received successfully"
