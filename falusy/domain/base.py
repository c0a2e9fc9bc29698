"""
Shared plumbing for the domain services.

Every write follows the same sequence:
1. Validate the payload (raises before any remote call)
2. Perform the remote write
3. Append an ActivityLog entry (best-effort)
4. Emit a success toast

A remote failure is logged, shown as an error toast and re-raised.
"""

from typing import Any, Awaitable, Mapping, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from falusy.activity import ActivityLogger
from falusy.services.remote import RemoteDataService, RemoteError
from falusy.toasts import ToastSink


logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


class DomainService:
    """Holds the collaborators every domain service needs."""

    def __init__(
        self,
        remote: RemoteDataService,
        user_id: str,
        activity: ActivityLogger,
        toasts: ToastSink,
    ):
        self._remote = remote
        self.user_id = user_id
        self._activity = activity
        self._toasts = toasts

    def _validate(
        self,
        model: type[M],
        data: Union[M, Mapping[str, Any]],
        failure_key: str = "validation_failed",
    ) -> M:
        """Coerce input into a validated model, toasting on failure."""
        if isinstance(data, model):
            return data
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.info(
                "input_rejected",
                model=model.__name__,
                user_id=self.user_id,
                errors=e.error_count(),
            )
            self._toasts.warning(failure_key)
            raise

    async def _remote_call(
        self,
        call: Awaitable[T],
        failure_key: str,
        event: str,
        **context: Any,
    ) -> T:
        """Await a remote call; on failure log, toast and re-raise."""
        try:
            return await call
        except RemoteError as e:
            logger.error(
                event,
                user_id=self.user_id,
                error_kind=e.kind.value,
                error=str(e),
                **context,
            )
            self._toasts.error(failure_key)
            raise
