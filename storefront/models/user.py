from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    password: str
    first_name: str
    last_name: str
    contact_number: Optional[str] = None

    # business info
    company_name: str
    website: Optional[str] = None
    business_description: Optional[str] = None
    business_type: str = Field(default="shop")
    number_of_stores: int = Field(default=1)
    gender: str = Field(default="unisex")
    categories: list = Field(default_factory=list, sa_column=Column(JSON))

    # street / city / state / zip_code / country
    billing_address: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    dispatching_address: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    email_notifications: bool = Field(default=True)
    sms_notifications: bool = Field(default=False)
    promotional_emails: bool = Field(default=True)

    role: str = Field(default="user")
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
