"""Receipt extraction schema."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from docscan.domain.pipeline.models import SchemaDescriptor
from docscan.domain.schemas.base import CamelModel


class ReceiptType(str, Enum):
    SALE = "sale"
    RETURN = "return"
    REFUND = "refund"
    ESTIMATE = "estimate"
    PROFORMA = "proforma"
    OTHER = "other"


class PaymentMethod(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    CASH = "cash"
    CHECK = "check"
    GIFT_CARD = "gift_card"
    STORE_CREDIT = "store_credit"
    MOBILE_PAYMENT = "mobile_payment"
    OTHER = "other"


class ReceiptFormat(str, Enum):
    RETAIL = "retail"
    RESTAURANT = "restaurant"
    SERVICE = "service"
    UTILITY = "utility"
    TRANSPORTATION = "transportation"
    ACCOMMODATION = "accommodation"
    OTHER = "other"


class Merchant(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    store_id: Optional[str] = None
    chain_name: Optional[str] = None


class Totals(CamelModel):
    subtotal: Optional[float] = Field(default=None, ge=0)
    tax: Optional[float] = Field(default=None, ge=0)
    tip: Optional[float] = Field(default=None, ge=0)
    discount: Optional[float] = Field(default=None, ge=0)
    total: Optional[float] = Field(default=None, ge=0)


class LineItem(CamelModel):
    description: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)
    discounted: Optional[bool] = None
    discount_amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None


class TaxItem(CamelModel):
    tax_name: Optional[str] = None
    tax_type: Optional[str] = None
    tax_rate: Optional[float] = Field(default=None, ge=0, le=1)
    tax_amount: Optional[float] = Field(default=None, ge=0)


class Payment(CamelModel):
    method: Optional[PaymentMethod] = None
    card_type: Optional[str] = None
    last_digits: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    transaction_id: Optional[str] = None


class ReceiptMetadata(CamelModel):
    confidence_score: Optional[float] = Field(default=None, ge=0, le=1)
    currency: Optional[str] = None
    language_code: Optional[str] = None
    time_zone: Optional[str] = None
    receipt_format: Optional[ReceiptFormat] = None
    source_image_id: Optional[str] = None
    warnings: Optional[list[str]] = None


class Receipt(CamelModel):
    """Data printed on a point-of-sale receipt."""

    merchant: Optional[Merchant] = None
    receipt_number: Optional[str] = None
    receipt_type: Optional[ReceiptType] = None
    timestamp: Optional[str] = Field(default=None, description="Date and time of the transaction")
    payment_method: Optional[str] = None
    totals: Optional[Totals] = None
    currency: Optional[str] = Field(default=None, description="ISO 4217 currency code")
    items: Optional[list[LineItem]] = None
    taxes: Optional[list[TaxItem]] = None
    payments: Optional[list[Payment]] = None
    notes: Optional[list[str]] = None
    metadata: Optional[ReceiptMetadata] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    is_valid_input: Optional[bool] = Field(
        default=None, description="False when the text does not look like a receipt"
    )


RECEIPT_SCHEMA = SchemaDescriptor.from_model("receipt", Receipt)
