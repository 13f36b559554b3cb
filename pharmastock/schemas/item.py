from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pharmastock.core.constants import MedicineForm
from pharmastock.core.dates import normalize_expiry


def _validate_expiry(value):
    try:
        return normalize_expiry(value)
    except ValueError as exc:
        raise ValueError(str(exc)) from None


class ItemBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    form: MedicineForm = MedicineForm.TABLET
    expiry_date: Optional[str] = Field(None, description="MM-YYYY, omitted for no expiry")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("expiry_date")
    @classmethod
    def _check_expiry(cls, value):
        return _validate_expiry(value)


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    form: Optional[MedicineForm] = None
    expiry_date: Optional[str] = None
    clear_expiry: bool = False

    @field_validator("expiry_date")
    @classmethod
    def _check_expiry(cls, value):
        return _validate_expiry(value)


class ItemRead(ItemBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemReadWithStock(ItemRead):
    current_stock: int = 0


class DisposeRequest(BaseModel):
    reason: str = Field(min_length=1)
