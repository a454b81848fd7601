from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class ConsultationRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    company: Optional[str] = None
    message: str = Field(min_length=1)
    consultation_type: str = Field(min_length=1)
