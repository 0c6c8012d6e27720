"""
API models and schemas for the FastAPI application.

Create schemas validate request bodies before any database access;
response schemas are read straight from ORM rows.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class ORMModel(BaseModel):
    """Base for response models populated from ORM rows."""

    model_config = {"from_attributes": True}


# Users and roles

class Credentials(BaseModel):
    """Signup / signin request body."""
    login: str = Field(..., min_length=1, description="User login", examples=["user123"])
    password: str = Field(..., min_length=1, max_length=72, description="User password", examples=["P@ssw0rd"])

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v):
        """bcrypt only accepts passwords up to 72 bytes."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes in UTF-8")
        return v


class UserResponse(ORMModel):
    """User as exposed by the API. Never carries the password hash."""
    id: int = Field(..., description="User identifier")
    login: str = Field(..., description="User login")


class UserTypeCreate(BaseModel):
    title: str = Field(..., min_length=1, description="Role title")
    is_admin: bool = Field(False, description="Administrator role")
    is_manager: bool = Field(False, description="Manager role")
    is_user: bool = Field(False, description="Default customer role")


class UserTypeResponse(ORMModel):
    id: int
    title: str
    is_admin: bool
    is_manager: bool
    is_user: bool


# CRM

class CrmCardCreate(BaseModel):
    """CRM card request body. Only the owner and the role are mandatory."""
    user_name: Optional[str] = Field(None, description="First name")
    user_surname: Optional[str] = Field(None, description="Surname")
    user_patronymic: Optional[str] = Field(None, description="Patronymic")
    title_card: Optional[str] = Field(None, description="Card title")
    active: bool = Field(False, description="Whether the card is active")
    card_photo: Optional[str] = Field(None, description="Photo URL or path")
    birthday: Optional[datetime] = Field(None, description="Birthday (ISO 8601)")
    user_id: int = Field(..., description="Owning user")
    user_type_id: int = Field(..., description="User type")


class CrmCardUpdate(BaseModel):
    user_name: Optional[str] = None
    user_surname: Optional[str] = None
    user_patronymic: Optional[str] = None
    title_card: Optional[str] = None
    active: Optional[bool] = None
    card_photo: Optional[str] = None
    birthday: Optional[datetime] = None
    user_id: Optional[int] = None
    user_type_id: Optional[int] = None

    @field_validator("user_id", "user_type_id", "active", mode="before")
    @classmethod
    def reject_null(cls, v):
        """These columns may be omitted but never cleared."""
        if v is None:
            raise ValueError("field may be omitted but not null")
        return v


class CrmCardResponse(ORMModel):
    id: int
    user_name: Optional[str] = None
    user_surname: Optional[str] = None
    user_patronymic: Optional[str] = None
    title_card: Optional[str] = None
    active: bool
    card_photo: Optional[str] = None
    birthday: Optional[datetime] = None
    user_id: int
    user_type_id: int


class CrmCardDetailResponse(CrmCardResponse):
    """CRM card with its user type embedded."""
    user_type: Optional[UserTypeResponse] = None


class CrmEmailCreate(BaseModel):
    email: str = Field(..., min_length=1, description="E-mail address")
    is_main: bool = Field(False, description="Primary address flag")
    crm_card_id: int = Field(..., description="Owning CRM card")


class CrmEmailResponse(ORMModel):
    id: int
    email: str
    is_main: bool
    crm_card_id: int


class CrmPaymentCardCreate(BaseModel):
    card_title: str = Field(..., min_length=1, description="Name on the card")
    card_number: str = Field(..., min_length=1, description="Card number")
    date_end: datetime = Field(..., description="Expiry date (ISO 8601)")
    crm_card_id: int = Field(..., description="Owning CRM card")


class CrmPaymentCardResponse(ORMModel):
    id: int
    card_title: str
    card_number: str
    date_end: datetime
    crm_card_id: int


class CrmAddressCreate(BaseModel):
    country: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    house: str = Field(..., min_length=1)
    apartment: str = Field(..., min_length=1)
    crm_card_id: int = Field(..., description="Owning CRM card")


class CrmAddressResponse(ORMModel):
    id: int
    country: str
    city: str
    street: str
    house: str
    apartment: str
    crm_card_id: int


# Catalogue

class AuthorCreate(BaseModel):
    first_name: str = Field(..., min_length=1, description="Author first name")
    last_name: str = Field(..., min_length=1, description="Author last name")
    biography: Optional[str] = Field(None, description="Short biography")


class AuthorResponse(ORMModel):
    id: int
    first_name: str
    last_name: str
    biography: Optional[str] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Category name")


class CategoryResponse(ORMModel):
    id: int
    name: str


class PublisherCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Publisher name")
    address: str = Field(..., min_length=1, description="Postal address")
    contact: str = Field(..., min_length=1, description="Contact details")


class PublisherResponse(ORMModel):
    id: int
    name: str
    address: str
    contact: str


class BookCreate(BaseModel):
    """Book request body."""
    title: str = Field(..., min_length=1, description="Book title")
    description: str = Field(..., min_length=1, description="Book description")
    price: float = Field(..., description="Price")
    published_at: datetime = Field(..., description="Publication date (ISO 8601)")
    stock: int = Field(..., description="Copies in stock")
    author_id: Optional[int] = Field(None, description="Author identifier")
    category_id: Optional[int] = Field(None, description="Category identifier")
    publisher_id: Optional[int] = Field(None, description="Publisher identifier")


class BookResponse(ORMModel):
    """Book with its related author, category and publisher."""
    id: int = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    description: str = Field(..., description="Book description")
    price: float = Field(..., description="Price")
    published_at: datetime = Field(..., description="Publication date")
    stock: int = Field(..., description="Copies in stock")
    author_id: Optional[int] = None
    category_id: Optional[int] = None
    publisher_id: Optional[int] = None
    author: Optional[AuthorResponse] = None
    category: Optional[CategoryResponse] = None
    publisher: Optional[PublisherResponse] = None


class BookFilterParams(BaseModel):
    """Query parameters for filtered book listing."""
    author_id: Optional[int] = Field(None, description="Filter by author")
    category_id: Optional[int] = Field(None, description="Filter by category")
    publisher_id: Optional[int] = Field(None, description="Filter by publisher")
    min_price: Optional[float] = Field(None, description="Minimum price, inclusive")
    max_price: Optional[float] = Field(None, description="Maximum price, inclusive")


# Orders

class OrderStatusCreate(BaseModel):
    title: str = Field(..., min_length=1, description="Status title")
    is_done: bool = False
    is_awaiting_payment: bool = False
    is_paid: bool = False
    is_confirmed: bool = False
    is_performed: bool = False
    is_canceled: bool = False


class OrderStatusResponse(ORMModel):
    id: int
    title: str
    is_done: bool
    is_awaiting_payment: bool
    is_paid: bool
    is_confirmed: bool
    is_performed: bool
    is_canceled: bool


class OrderCreate(BaseModel):
    total_amount: float = Field(..., description="Order total")
    order_status_id: int = Field(..., description="Current status")
    order_date: datetime = Field(..., description="Order date (ISO 8601)")
    user_id: int = Field(..., description="Ordering user")


class OrderResponse(ORMModel):
    id: int
    total_amount: float
    order_status_id: int
    order_date: datetime
    user_id: int


class OrderItemCreate(BaseModel):
    quantity: int = Field(..., description="Number of copies")
    price: float = Field(..., description="Unit price at order time")
    order_id: int = Field(..., description="Parent order")
    book_id: int = Field(..., description="Ordered book")


class OrderItemResponse(ORMModel):
    id: int
    quantity: int
    price: float
    order_id: int
    book_id: int


# Auth responses

class AuthResponse(BaseModel):
    """Result of a successful signup."""
    user: UserResponse = Field(..., description="Created or authenticated user")
    user_crm: Optional[CrmCardDetailResponse] = Field(None, description="User CRM card")


class SigninResponse(AuthResponse):
    """Result of a successful signin."""
    access_token: str = Field(..., description="Bearer token")
    token_type: str = Field("bearer", description="Token type")


# Generic responses

class MessageResponse(BaseModel):
    """Plain confirmation or error message."""
    message: str = Field(..., description="Human-readable message")


class FieldError(BaseModel):
    """One request validation failure."""
    field: str = Field(..., description="Offending field")
    message: str = Field(..., description="What is wrong with it")
    type: str = Field(..., description="Error type")
    location: str = Field(..., description="body, query or path")
    value: Optional[Any] = Field(None, description="Rejected value")


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError] = Field(..., description="Field-level validation errors")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
