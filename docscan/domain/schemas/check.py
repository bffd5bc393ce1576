"""Check extraction schema."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from docscan.domain.pipeline.models import SchemaDescriptor
from docscan.domain.schemas.base import CamelModel


class CheckType(str, Enum):
    PERSONAL = "personal"
    BUSINESS = "business"
    CASHIER = "cashier"
    CERTIFIED = "certified"
    TRAVELER = "traveler"
    GOVERNMENT = "government"
    PAYROLL = "payroll"
    MONEY_ORDER = "money_order"
    OTHER = "other"


class BankAccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    MONEY_MARKET = "money_market"
    OTHER = "other"


class CheckMetadata(CamelModel):
    confidence_score: Optional[float] = Field(default=None, ge=0, le=1)
    source_image_id: Optional[str] = None
    ocr_provider: Optional[str] = None
    warnings: Optional[list[str]] = None


class Check(CamelModel):
    """Data printed or written on a bank check."""

    check_number: Optional[str] = Field(default=None, description="Check number or identifier")
    date: Optional[str] = Field(default=None, description="Date on the check, ISO 8601 preferred")
    payee: Optional[str] = Field(default=None, description="Person or entity the check is payable to")
    payer: Optional[str] = Field(default=None, description="Person or entity who wrote the check")
    amount: Optional[float] = Field(default=None, ge=0, description="Numeric amount of the check")
    amount_text: Optional[str] = Field(default=None, description="Written amount")
    memo: Optional[str] = None
    bank_name: Optional[str] = None
    routing_number: Optional[str] = Field(
        default=None, pattern=r"^\d{9}$", description="Bank routing number (9 digits)"
    )
    account_number: Optional[str] = None
    check_type: Optional[CheckType] = None
    account_type: Optional[BankAccountType] = None
    signature: Optional[bool] = Field(default=None, description="Whether the check appears signed")
    signature_text: Optional[str] = None
    fractional_code: Optional[str] = None
    micr_line: Optional[str] = Field(default=None, description="Full MICR line at the bottom")
    metadata: Optional[CheckMetadata] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    is_valid_input: Optional[bool] = Field(
        default=None, description="False when the text does not look like a check"
    )


CHECK_SCHEMA = SchemaDescriptor.from_model("check", Check)
