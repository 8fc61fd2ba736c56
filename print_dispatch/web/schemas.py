from __future__ import annotations

"""
Pydantic schemas for the Print Dispatch HTTP API.

These models validate enqueue and receipt submissions and describe the
JSON responses. Field names are snake_case; the enqueue request also accepts
the camelCase names older order-management clients send.
"""

from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, field_validator

from print_dispatch.dispatch.receipt import (
    CutMode,
    Modifier,
    PaymentSummary,
    ReceiptKind,
    ReceiptLine,
)


def _strip_required(v: str, what: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError(f"{what} required")
    return v


class EnqueueRequest(BaseModel):
    """Request to queue raw receipt content for a printer."""

    printer_id: StrictStr = Field(
        validation_alias=AliasChoices("printer_id", "printerId"),
        description="Target printer identity, as used in the printer's poll URL",
        max_length=128,
        examples=["kitchen-1", "bar"],
    )
    payload: StrictStr = Field(
        description="Receipt content; plain text or a printer command stream",
        min_length=1,
    )
    content_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("content_type", "contentType"),
        description="Media type handed to the printer with the payload",
        max_length=100,
        examples=["text/plain", "application/vnd.star.starprnt"],
    )
    order_reference: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("order_reference", "orderId", "order_id"),
        max_length=128,
    )
    receipt_kind: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("receipt_kind", "receiptType", "receipt_type"),
        max_length=64,
        examples=["kitchen", "customer-receipt"],
    )

    @field_validator("printer_id")
    @classmethod
    def _printer_id_rules(cls, v: str) -> str:
        return _strip_required(v, "printer_id")


class ModifierIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price_delta: int = Field(default=0, description="Minor currency units per item")


class ReceiptLineIn(BaseModel):
    """One ordered item."""

    name: str = Field(min_length=1, max_length=100, examples=["Coffee"])
    quantity: int = Field(default=1, ge=0, le=10_000)
    unit_price: int = Field(default=0, description="Minor currency units (cents/øre)")
    modifiers: List[Union[str, ModifierIn]] = Field(default_factory=list)
    category_id: Optional[str] = Field(default=None, max_length=100)
    category_name: Optional[str] = Field(default=None, max_length=100, examples=["Beverage"])

    @field_validator("category_id", mode="before")
    @classmethod
    def _category_id_str(cls, v):
        return None if v is None else str(v)

    def to_line(self) -> ReceiptLine:
        mods = [Modifier(m) if isinstance(m, str) else Modifier(m.name, m.price_delta) for m in self.modifiers]
        return ReceiptLine(
            name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            modifiers=mods,  # type: ignore[arg-type]
            category_id=self.category_id,
            category_name=self.category_name,
        )


class PaymentIn(BaseModel):
    method: str = Field(min_length=1, max_length=40, examples=["CASH", "CARD"])
    amount_tendered: int = Field(ge=0, validation_alias=AliasChoices("amount_tendered", "amount"))
    change_given: int = Field(default=0, ge=0)
    tip: int = Field(default=0, ge=0)
    transaction_id: Optional[str] = Field(default=None, max_length=100)

    def to_summary(self) -> PaymentSummary:
        return PaymentSummary(
            method=self.method,
            amount_tendered=self.amount_tendered,
            change_given=self.change_given,
            tip=self.tip,
            transaction_id=self.transaction_id,
        )


class ReceiptRequest(BaseModel):
    """Request to compose a structured receipt and queue it for a printer."""

    printer_id: StrictStr = Field(validation_alias=AliasChoices("printer_id", "printerId"), max_length=128)
    kind: ReceiptKind = Field(default=ReceiptKind.CUSTOMER)
    lines: List[ReceiptLineIn] = Field(default_factory=list, max_length=500)
    order_reference: Optional[str] = Field(default=None, max_length=128)
    customer_name: Optional[str] = Field(default=None, max_length=100)
    header_text: Optional[str] = Field(default=None, max_length=48)
    footer_text: Optional[str] = Field(default=None, max_length=200)
    show_prices: Optional[bool] = None
    cut: Optional[CutMode] = None
    feed_lines: Optional[int] = Field(default=None, ge=0, le=20)
    payment: Optional[PaymentIn] = None

    @field_validator("printer_id")
    @classmethod
    def _printer_id_rules(cls, v: str) -> str:
        return _strip_required(v, "printer_id")


class EnqueueAcceptedResponse(BaseModel):
    """Response when a print job has been queued."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    job_id: str = Field(serialization_alias="jobId")
    printer_id: str = Field(serialization_alias="printerId")
    status: str = Field(examples=["QUEUED"])
    message: str = "Print job enqueued successfully"
