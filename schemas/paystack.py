"""
Pydantic schemas for Paystack webhook payloads.

Events are a tagged union on the ``event`` field. Only the three charge events
are modelled; anything else is acknowledged and ignored by the webhook.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

KNOWN_EVENTS = ("charge.success", "charge.failed", "charge.abandoned")


class WebhookEnvelope(BaseModel):
     """Minimal shape used to read the event name before full validation."""
     event: str

     model_config = ConfigDict(extra="allow")


class ChargeData(BaseModel):
     reference: str = Field(..., min_length=1)
     amount: int = Field(..., ge=0, description="Amount in minor units (kobo, pence, cents)")
     status: Optional[str] = None
     message: Optional[str] = None
     gateway_response: Optional[str] = None
     paid_at: Optional[datetime] = None
     channel: Optional[str] = None
     currency: Optional[str] = None

     model_config = ConfigDict(extra="allow")


class ChargeSuccessData(ChargeData):
     paid_at: datetime


class ChargeSuccessEvent(BaseModel):
     event: Literal["charge.success"]
     data: ChargeSuccessData

     model_config = ConfigDict(
          extra="allow",
          json_schema_extra={
               "example": {
                    "event": "charge.success",
                    "data": {
                         "reference": "PAY-42",
                         "amount": 500000,
                         "status": "success",
                         "paid_at": "2024-06-01T10:00:00Z",
                         "channel": "card",
                         "currency": "NGN",
                    },
               }
          },
     )


class ChargeFailedEvent(BaseModel):
     event: Literal["charge.failed"]
     data: ChargeData

     model_config = ConfigDict(extra="allow")


class ChargeAbandonedEvent(BaseModel):
     event: Literal["charge.abandoned"]
     data: ChargeData

     model_config = ConfigDict(extra="allow")


WebhookEvent = Annotated[
     Union[ChargeSuccessEvent, ChargeFailedEvent, ChargeAbandonedEvent],
     Field(discriminator="event"),
]

webhook_event_adapter = TypeAdapter(WebhookEvent)
