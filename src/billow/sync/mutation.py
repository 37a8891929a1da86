"""
Form submission coordination.

``MutationCoordinator.submit`` runs validate -> submit -> refetch for one
form. Only one submission per form is in flight; the mutation counts as
settled once the owning collection has been re-fetched.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Mapping, Sequence, TypeVar

import pydantic

from billow.errors import SyncError, ValidationError
from billow.lib import logs
from billow.sync.query_cache import QueryCacheEntry

LOG = logs.logger(__file__)

D = TypeVar("D", bound=pydantic.BaseModel)
R = TypeVar("R")

_VALUE_ERROR_PREFIX = "Value error, "


class MutationStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    SETTLED = "settled"
    INVALID = "invalid"
    FAILED = "failed"
    REJECTED = "rejected"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class MutationOutcome(Generic[R]):
    """
    Result of one ``submit`` call.

    Attributes:
        status: How the submission ended.
        draft: The submitted values, returned so the form stays populated.
        result: Created resource when settled or stale.
        error: Validation or classified request error; for STALE, the
            error of the refresh that failed after a successful write.
    """

    status: OutcomeStatus
    draft: Any = None
    result: R | None = None
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SETTLED

    @property
    def field_errors(self) -> dict[str, str]:
        if isinstance(self.error, ValidationError):
            return dict(self.error.field_errors)
        return {}


def validation_error(exc: pydantic.ValidationError) -> ValidationError:
    """Convert a pydantic error into field-level messages, first per field."""
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "form"
        message = error["msg"]
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX) :]
        field_errors.setdefault(field, message)
    return ValidationError(field_errors)


class MutationCoordinator(Generic[D, R]):
    """
    Coordinates submissions of one form.

    Attributes:
        name: Form name used in logs.
        status: Current mutation state.
        error: Dismissible error of the last failed submission.
        field_errors: Field messages of the last invalid submission.
        result: Result of the last settled submission.
        closed: True after ``close``.
    """

    def __init__(
        self,
        name: str,
        draft_model: type[D],
        submitter: Callable[[D], Awaitable[R]],
        refresh: Sequence[QueryCacheEntry] = (),
    ) -> None:
        """
        Args:
            name: Form name used in logs.
            draft_model: Pydantic model validating the form values.
            submitter: Coroutine function sending a validated draft.
            refresh: Entries re-fetched after a successful submission.
        """
        self.name = name
        self.status = MutationStatus.IDLE
        self.error: SyncError | None = None
        self.field_errors: dict[str, str] = {}
        self.result: R | None = None
        self.closed = False
        self._draft_model = draft_model
        self._submitter = submitter
        self._refresh = tuple(refresh)
        self._failed_draft: D | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is MutationStatus.PENDING

    def validate(self, values: Mapping[str, Any] | D) -> D:
        """
        Validate form values into a draft.

        Raises:
            ValidationError: With one message per invalid field.
        """
        if isinstance(values, self._draft_model):
            return values
        try:
            return self._draft_model.model_validate(dict(values))
        except pydantic.ValidationError as exc:
            raise validation_error(exc) from exc

    async def submit(self, values: Mapping[str, Any] | D) -> MutationOutcome[R]:
        """Validate, send and settle one submission."""
        if self.closed or self.status is MutationStatus.PENDING:
            LOG.info("submit rejected - %s already in flight", self.name)
            return MutationOutcome(OutcomeStatus.REJECTED, draft=values)

        try:
            draft = self.validate(values)
        except ValidationError as exc:
            self.field_errors = dict(exc.field_errors)
            return MutationOutcome(OutcomeStatus.INVALID, draft=values, error=exc)

        self.field_errors = {}
        self.error = None
        self.status = MutationStatus.PENDING
        LOG.info("submit - %s", self.name)
        try:
            return await self._send(draft, values)
        except BaseException:
            # Unclassified errors propagate once the form has left PENDING.
            if not self.closed and self.status is MutationStatus.PENDING:
                LOG.warning("submit aborted - %s", self.name)
                self.status = MutationStatus.IDLE
            raise

    async def _send(self, draft: D, values: Mapping[str, Any] | D) -> MutationOutcome[R]:
        try:
            result = await self._submitter(draft)
        except SyncError as exc:
            LOG.warning("submit failed - %s: %r", self.name, exc)
            if not self.closed:
                self.status = MutationStatus.FAILED
                self.error = exc
                self._failed_draft = draft
            return MutationOutcome(OutcomeStatus.FAILED, draft=values, error=exc)

        snapshots = []
        if self._refresh and not self.closed:
            snapshots = await asyncio.gather(*(entry.refetch() for entry in self._refresh))
        refresh_error = next((s.error for s in snapshots if s.is_failed), None)
        if not self.closed:
            self.status = MutationStatus.SUCCEEDED
            self.result = result
            self.error = refresh_error
            self._failed_draft = None
        if refresh_error is not None:
            LOG.warning("refresh failed - %s: %r", self.name, refresh_error)
            return MutationOutcome(
                OutcomeStatus.STALE, draft=values, result=result, error=refresh_error
            )
        return MutationOutcome(OutcomeStatus.SETTLED, draft=values, result=result)

    async def retry(self) -> MutationOutcome[R] | None:
        """Resubmit the last failed draft; None when nothing failed."""
        if self.status is not MutationStatus.FAILED or self._failed_draft is None:
            return None
        return await self.submit(self._failed_draft)

    def dismiss_error(self) -> None:
        """Clear the failure message, keeping everything else."""
        self.error = None
        if self.status is MutationStatus.FAILED:
            self.status = MutationStatus.IDLE

    def reset(self) -> None:
        """Return to IDLE after the form was closed or cleared."""
        if self.status is not MutationStatus.PENDING:
            self.status = MutationStatus.IDLE
            self.error = None
            self.field_errors = {}

    def close(self) -> None:
        self.closed = True
