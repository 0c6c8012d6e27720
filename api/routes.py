"""
Route registration: the auth endpoints, the book filter endpoint and one
CRUD router per entity.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.auth import AuthService, get_auth_service
from api.database import BookRepository, get_session
from api.models import (
    AuthorCreate, AuthorResponse, AuthResponse, BookCreate, BookFilterParams, BookResponse,
    CategoryCreate, CategoryResponse, Credentials, CrmAddressCreate, CrmAddressResponse,
    CrmCardCreate, CrmCardDetailResponse, CrmCardUpdate, CrmEmailCreate, CrmEmailResponse,
    CrmPaymentCardCreate, CrmPaymentCardResponse, MessageResponse, OrderCreate, OrderItemCreate,
    OrderItemResponse, OrderResponse, OrderStatusCreate, OrderStatusResponse, PublisherCreate,
    PublisherResponse, SigninResponse, UserResponse, UserTypeCreate, UserTypeResponse,
    ValidationErrorResponse
)
from api.resources import Resource, build_resource_router, store_failure
from storage.models import (
    Author, Book, Category, CrmAddress, CrmCard, CrmEmail, CrmPaymentCard,
    Order, OrderItem, OrderStatus, Publisher, User, UserType
)

logger = structlog.get_logger(__name__)


# Auth endpoints

auth_router = APIRouter(prefix="/auth", tags=["Auth"])

auth_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": ValidationErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": MessageResponse},
}


@auth_router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**auth_responses, status.HTTP_409_CONFLICT: {"model": MessageResponse}},
)
async def signup(credentials: Credentials, service: AuthService = Depends(get_auth_service)):
    """
    Create a new user.

    The user gets a CRM card with the default user type. The password is
    never returned.
    """
    return await service.signup(credentials.login, credentials.password)


@auth_router.post(
    "/signin",
    response_model=SigninResponse,
    responses={
        **auth_responses,
        status.HTTP_401_UNAUTHORIZED: {"model": MessageResponse},
        status.HTTP_404_NOT_FOUND: {"model": MessageResponse},
    },
)
async def signin(credentials: Credentials, service: AuthService = Depends(get_auth_service)):
    """Sign in an existing user and receive a bearer token."""
    return await service.signin(credentials.login, credentials.password)


# Entities

BOOKS = Resource(
    name="Book",
    path="/book",
    model=Book,
    response_model=BookResponse,
    create_schema=BookCreate,
    protect_reads=False,
    tags=["Books"],
    repository_factory=BookRepository,
)

RESOURCES = [
    Resource(
        name="User", path="/user", model=User, response_model=UserResponse, tags=["User"],
    ),
    Resource(
        name="UserType", path="/user_type", model=UserType,
        response_model=UserTypeResponse, create_schema=UserTypeCreate, tags=["User Types"],
    ),
    Resource(
        name="CrmCard", path="/crm_card", model=CrmCard, response_model=CrmCardDetailResponse,
        create_schema=CrmCardCreate, update_schema=CrmCardUpdate,
        load_options=(selectinload(CrmCard.user_type),), tags=["CRM Cards"],
    ),
    Resource(
        name="CrmEmail", path="/crm_email", model=CrmEmail,
        response_model=CrmEmailResponse, create_schema=CrmEmailCreate, tags=["CRM Emails"],
    ),
    Resource(
        name="CrmPaymentCard", path="/crm_payment_card", model=CrmPaymentCard,
        response_model=CrmPaymentCardResponse, create_schema=CrmPaymentCardCreate,
        tags=["CRM Payment Cards"],
    ),
    Resource(
        name="CrmAddress", path="/crm_address", model=CrmAddress,
        response_model=CrmAddressResponse, create_schema=CrmAddressCreate, tags=["CRM Addresses"],
    ),
    Resource(
        name="Author", path="/author", model=Author, response_model=AuthorResponse,
        create_schema=AuthorCreate, protect_reads=False, tags=["Authors"],
    ),
    Resource(
        name="Category", path="/categories", model=Category, response_model=CategoryResponse,
        create_schema=CategoryCreate, protect_reads=False, tags=["Categories"],
    ),
    Resource(
        name="Publisher", path="/publishers", model=Publisher, response_model=PublisherResponse,
        create_schema=PublisherCreate, protect_reads=False, tags=["Publishers"],
    ),
    BOOKS,
    Resource(
        name="OrderStatus", path="/order_status", model=OrderStatus,
        response_model=OrderStatusResponse, create_schema=OrderStatusCreate, tags=["Order Statuses"],
    ),
    Resource(
        name="Order", path="/order", model=Order, response_model=OrderResponse,
        create_schema=OrderCreate, tags=["Orders"],
    ),
    Resource(
        name="OrderItem", path="/order_item", model=OrderItem,
        response_model=OrderItemResponse, create_schema=OrderItemCreate, tags=["Order Items"],
    ),
]


async def filter_books(
    author_id: Optional[int] = None,
    category_id: Optional[int] = None,
    publisher_id: Optional[int] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    session: AsyncSession = Depends(get_session)
):
    """
    Get books matching all supplied filters.

    - **author_id**: Filter by author
    - **category_id**: Filter by category
    - **publisher_id**: Filter by publisher
    - **min_price**: Minimum price, inclusive
    - **max_price**: Maximum price, inclusive
    """
    query_params = BookFilterParams(
        author_id=author_id,
        category_id=category_id,
        publisher_id=publisher_id,
        min_price=min_price,
        max_price=max_price
    )
    try:
        return await BookRepository(session).find_filtered(query_params)
    except SQLAlchemyError as e:
        raise store_failure(BOOKS, "filter", e)


def build_book_router() -> APIRouter:
    """Book router with /filters registered ahead of /book/{record_id}."""
    router = APIRouter(prefix=BOOKS.path, tags=BOOKS.tags)
    router.add_api_route(
        "/filters",
        filter_books,
        methods=["GET"],
        response_model=List[BookResponse],
        summary="Filter books",
    )
    return build_resource_router(BOOKS, router=router)


def build_api_router() -> APIRouter:
    """Assemble every router of the API."""
    api_router = APIRouter()
    api_router.include_router(auth_router)

    for resource in RESOURCES:
        if resource is BOOKS:
            api_router.include_router(build_book_router())
        else:
            api_router.include_router(build_resource_router(resource))

    return api_router
