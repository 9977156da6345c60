from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# ---------- Base (entrada) ----------
class CustomerBase(BaseModel):
    cedula: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name:  str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    company_id: Optional[int] = None
    monthly_salary: Optional[Decimal] = Field(None, ge=0)
    months_at_company: Optional[int] = Field(None, ge=0)
    contract_start: Optional[date] = None

    @field_validator('cedula')
    @classmethod
    def cedula_must_be_valid(cls, v: str) -> str:
        # Cédula panameña: letras, dígitos y guiones (p.ej. 8-123-456, PE-12-345)
        v = v.strip().upper()
        if not v or not v.replace("-", "").isalnum():
            raise ValueError('La cédula debe contener solo letras, números y guiones')
        return v

    @field_validator('email')
    @classmethod
    def empty_email_to_none(cls, v):
        v = (v or "").strip()
        return v if v else None

# ---------- Crear ----------
class CustomerCreate(CustomerBase):
    pass

# ---------- Salida ----------
class CustomerOut(CustomerBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # (pydantic v2)
