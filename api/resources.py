"""
Generic CRUD routers.

Each entity is declared once as a Resource; build_resource_router turns the
declaration into list/get/create/update/delete endpoints with request
validation, the auth gate where required, and uniform error mapping.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import authenticate
from api.database import Repository, get_session
from api.exceptions import ConflictError, NotFoundError
from api.models import MessageResponse

logger = structlog.get_logger(__name__)


@dataclass
class Resource:
    """Declaration of one entity exposed over REST."""
    name: str
    path: str
    model: type
    response_model: type
    create_schema: Optional[type] = None
    update_schema: Optional[type] = None
    load_options: Sequence = ()
    protect_reads: bool = True
    protect_writes: bool = True
    tags: List[str] = field(default_factory=list)
    repository_factory: Optional[Callable[[AsyncSession], Repository]] = None

    def __post_init__(self):
        if self.update_schema is None:
            self.update_schema = self.create_schema
        if not self.tags:
            self.tags = [self.name]

    def repository(self, session: AsyncSession) -> Repository:
        if self.repository_factory is not None:
            return self.repository_factory(session)
        return Repository(session, self.model, self.load_options)


def store_failure(resource: Resource, action: str, error: SQLAlchemyError) -> Exception:
    """
    Translate a store error into the exception reported to the client.

    Constraint violations become a 409, anything else a 500 carrying the
    driver message.
    """
    if isinstance(error, IntegrityError):
        logger.warning("Constraint violation", entity=resource.name, action=action, error=str(error.orig))
        return ConflictError(str(error.orig))

    logger.error("Store operation failed", entity=resource.name, action=action, error=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )


def build_resource_router(resource: Resource, router: Optional[APIRouter] = None) -> APIRouter:
    """
    Create the CRUD endpoints of a resource.

    Args:
        resource: Entity declaration
        router: Router to extend; routes registered on it beforehand take precedence

    Returns:
        Router with the resource endpoints
    """
    if router is None:
        router = APIRouter(prefix=resource.path, tags=resource.tags)

    read_dependencies = [Depends(authenticate)] if resource.protect_reads else []
    write_dependencies = [Depends(authenticate)] if resource.protect_writes else []
    not_found = f"{resource.name} not found"
    error_responses = {status.HTTP_404_NOT_FOUND: {"model": MessageResponse}}

    def get_repository(session: AsyncSession = Depends(get_session)) -> Repository:
        return resource.repository(session)

    @router.get(
        "",
        response_model=List[resource.response_model],
        dependencies=read_dependencies,
        summary=f"List {resource.name} records",
    )
    async def list_records(repository: Repository = Depends(get_repository)):
        try:
            return await repository.find_all()
        except SQLAlchemyError as e:
            raise store_failure(resource, "list", e)

    @router.get(
        "/{record_id}",
        response_model=resource.response_model,
        dependencies=read_dependencies,
        responses=error_responses,
        summary=f"Get {resource.name} by id",
    )
    async def get_record(record_id: int, repository: Repository = Depends(get_repository)):
        try:
            record = await repository.find_by_id(record_id)
        except SQLAlchemyError as e:
            raise store_failure(resource, "get", e)

        if record is None:
            raise NotFoundError(not_found)
        return record

    if resource.create_schema is not None:
        create_schema = resource.create_schema
        update_schema = resource.update_schema

        @router.post(
            "",
            response_model=resource.response_model,
            status_code=status.HTTP_201_CREATED,
            dependencies=write_dependencies,
            summary=f"Create {resource.name}",
        )
        async def create_record(payload: create_schema, repository: Repository = Depends(get_repository)):
            try:
                return await repository.create(payload.model_dump())
            except SQLAlchemyError as e:
                raise store_failure(resource, "create", e)

        @router.put(
            "/{record_id}",
            response_model=resource.response_model,
            dependencies=write_dependencies,
            responses=error_responses,
            summary=f"Update {resource.name}",
        )
        async def update_record(
            record_id: int,
            payload: update_schema,
            repository: Repository = Depends(get_repository)
        ):
            try:
                record = await repository.update(record_id, payload.model_dump(exclude_unset=True))
            except SQLAlchemyError as e:
                raise store_failure(resource, "update", e)

            if record is None:
                raise NotFoundError(not_found)
            return record

    @router.delete(
        "/{record_id}",
        response_model=MessageResponse,
        dependencies=write_dependencies,
        responses=error_responses,
        summary=f"Delete {resource.name}",
    )
    async def delete_record(record_id: int, repository: Repository = Depends(get_repository)):
        try:
            record = await repository.delete(record_id)
        except SQLAlchemyError as e:
            raise store_failure(resource, "delete", e)

        if record is None:
            raise NotFoundError(not_found)
        return MessageResponse(message=f"{resource.name} deleted successfully")

    return router
