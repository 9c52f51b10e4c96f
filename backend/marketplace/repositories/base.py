"""
Base Repository

This module implements the base repository over the persistence gateway.
Every gateway round trip goes through ``_execute`` / ``_flush`` so that:

- calls are bounded by GATEWAY_TIMEOUT_SECONDS
- unique-constraint violations surface as ConflictError
- any other database failure surfaces as InfrastructureError

Not-found is never an exception at this layer: lookups return None and the
service decides whether that is an error.
"""

import asyncio
from typing import Any, Dict, Optional, Type
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import select
import structlog

from ..core.config import get_settings
from ..core.exceptions import ConflictError, InfrastructureError
from ..models import Base

logger = structlog.get_logger()


class BaseRepository:
    """
    Base repository with primary-key lookup, insert and commit.

    NOTE: No generics. Each repository subclass specifies its model type
    directly and adds entity-specific queries.
    """

    def __init__(self, session: AsyncSession, model: Type[Base]):
        """
        Initialize repository with strict input validation.

        Args:
            session: AsyncSession for database operations
            model: SQLAlchemy model class

        Raises:
            TypeError: If session is not AsyncSession or model is invalid
        """
        if not isinstance(session, AsyncSession):
            raise TypeError(
                f"session must be AsyncSession instance, got {type(session).__name__}"
            )

        if not model or not hasattr(model, "__tablename__"):
            raise TypeError(
                f"model must be valid SQLAlchemy model with __tablename__, got {type(model).__name__}"
            )

        self.session = session
        self.model = model
        self.timeout = get_settings().GATEWAY_TIMEOUT_SECONDS

    async def _guard(self, operation: str, awaitable):
        """Run one gateway call with timeout and error translation."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)

        except IntegrityError as e:
            await self.session.rollback()
            logger.info(
                "Repository: Unique constraint violated",
                model=self.model.__name__,
                operation=operation,
            )
            raise ConflictError(
                f"{self.model.__name__} already exists",
                details={"operation": operation},
            ) from e

        except asyncio.TimeoutError as e:
            logger.error(
                "Repository: Gateway call timed out",
                model=self.model.__name__,
                operation=operation,
                timeout_seconds=self.timeout,
            )
            raise InfrastructureError(
                "Database timeout", operation=operation, original_error=e
            )

        except SQLAlchemyError as e:
            logger.error(
                "Repository: Database error",
                model=self.model.__name__,
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            raise InfrastructureError(operation=operation, original_error=e)

    async def _execute(self, stmt, operation: str):
        return await self._guard(operation, self.session.execute(stmt))

    async def _flush(self, operation: str) -> None:
        await self._guard(operation, self.session.flush())

    async def get(self, id: UUID) -> Optional[Base]:
        """
        Get entity by ID.

        Args:
            id: Entity UUID (REQUIRED)

        Returns:
            Entity if found, None otherwise
        """
        if id is None:
            raise ValueError("Entity id is required (cannot be None)")

        stmt = select(self.model).where(self.model.id == id)
        result = await self._execute(stmt, "get")
        entity = result.scalar_one_or_none()

        logger.debug(
            "Repository: Entity lookup",
            model=self.model.__name__,
            entity_id=str(id),
            found=entity is not None,
        )
        return entity

    async def create(self, data: Dict[str, Any]) -> Base:
        """
        Create new entity from a field mapping.

        Returns:
            Created entity with ID populated

        Raises:
            ConflictError: On unique-constraint violation
        """
        if not data:
            raise ValueError("Entity data is required (cannot be empty)")

        obj = self.model(**data)
        self.session.add(obj)
        await self._flush("create")

        logger.info(
            "Repository: Entity created",
            model=self.model.__name__,
            entity_id=str(obj.id),
        )
        return obj

    async def commit(self) -> None:
        """Commit the unit of work; side effects must run only after this."""
        await self._guard("commit", self.session.commit())
