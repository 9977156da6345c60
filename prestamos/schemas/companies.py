from pydantic import BaseModel, Field
from datetime import datetime

class CompanyBase(BaseModel):
    name: str = Field(..., max_length=200)

class CompanyCreate(CompanyBase):
    pass

class CompanyUpdate(CompanyBase):
    pass

class Company(CompanyBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
