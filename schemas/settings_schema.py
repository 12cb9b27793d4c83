# settings_schema.py
from pydantic import Field, field_validator
from typing import Optional

from schemas.common import DocumentModel


def normalize_prefix(value: str) -> str:
    value = (value or "").strip().upper()
    if not value or len(value) > 5 or not value.isalnum():
        raise ValueError("Invoice prefix must be 1-5 letters or digits")
    return value


class CompanySettings(DocumentModel):
    """Company details printed on invoices (settings/{scope})."""
    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    gst: str = ""
    pan: str = ""
    logo_url: Optional[str] = None
    logo_base64: Optional[str] = None
    invoice_prefix: str = "INV"

    bank_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    branch_name: str = ""

    @field_validator("invoice_prefix")
    @classmethod
    def _prefix(cls, value: str) -> str:
        return normalize_prefix(value)


class CompanySettingsUpdate(DocumentModel):
    name: Optional[str] = Field(default=None, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = Field(default=None, max_length=100)
    website: Optional[str] = Field(default=None, max_length=200)
    gst: Optional[str] = Field(default=None, max_length=15)
    pan: Optional[str] = Field(default=None, max_length=10)
    invoice_prefix: Optional[str] = None

    bank_name: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=30)
    ifsc_code: Optional[str] = Field(default=None, max_length=11)
    branch_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("invoice_prefix")
    @classmethod
    def _prefix(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalize_prefix(value)
