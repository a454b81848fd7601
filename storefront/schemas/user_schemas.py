from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str
    last_name: str
    company_name: str
    contact_number: Optional[str] = None
    website: Optional[str] = None
    business_description: Optional[str] = None
    business_type: str = "shop"
    number_of_stores: int = 1
    gender: str = "unisex"
    categories: List[str] = []
    billing_address: Optional[Address] = None
    dispatching_address: Optional[Address] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str
    refresh_token: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class PasswordReset(BaseModel):
    email: EmailStr
    code: str
    new_password: str = Field(min_length=6)


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    contact_number: Optional[str] = None
    company_name: Optional[str] = None
    website: Optional[str] = None
    business_description: Optional[str] = None
    business_type: Optional[str] = None
    number_of_stores: Optional[int] = None
    categories: Optional[List[str]] = None
    billing_address: Optional[Address] = None
    dispatching_address: Optional[Address] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    promotional_emails: Optional[bool] = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    company_name: str
    contact_number: Optional[str] = None
    website: Optional[str] = None
    business_type: str
    number_of_stores: int
    categories: list = []
    billing_address: Optional[dict] = None
    dispatching_address: Optional[dict] = None
    email_notifications: bool
    sms_notifications: bool
    promotional_emails: bool
    role: str
    is_active: bool

    model_config = {"from_attributes": True}


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class RoleUpdate(BaseModel):
    role: Literal["user", "admin"]


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = "Admin"
    last_name: str = "User"
    company_name: str = "Admin Account"
    role: Literal["user", "admin"] = "user"
