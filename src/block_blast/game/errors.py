from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Type


class RejectReason(str, Enum):
    INVALID_PHASE = "invalid_phase"
    UNKNOWN_SHAPE = "unknown_shape"
    ILLEGAL_PLACEMENT = "illegal_placement"
    EMPTY_BATCH_UNDERFLOW = "empty_batch_underflow"


class CommandRejected(Exception):
    """Base class for a command the session refused. State is untouched."""

    reason: RejectReason

    def __init__(self, message: str = "", detail: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.reason.value)
        self.detail = detail or {}


class InvalidPhase(CommandRejected):
    reason = RejectReason.INVALID_PHASE


class UnknownShape(CommandRejected):
    reason = RejectReason.UNKNOWN_SHAPE


class IllegalPlacement(CommandRejected):
    reason = RejectReason.ILLEGAL_PLACEMENT


class EmptyBatchUnderflow(CommandRejected):
    reason = RejectReason.EMPTY_BATCH_UNDERFLOW


_EXCEPTIONS: Dict[RejectReason, Type[CommandRejected]] = {
    cls.reason: cls for cls in (InvalidPhase, UnknownShape, IllegalPlacement, EmptyBatchUnderflow)
}


@dataclass(frozen=True)
class CommandResult:
    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ""
    detail: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls, **detail: Any) -> "CommandResult":
        return cls(True, detail=detail)

    @classmethod
    def reject(cls, reason: RejectReason, message: str = "", **detail: Any) -> "CommandResult":
        return cls(False, reason, message or reason.value, detail)

    def raise_for_reason(self) -> "CommandResult":
        """Raise the matching CommandRejected subclass if rejected."""
        if not self.accepted and self.reason is not None:
            raise _EXCEPTIONS[self.reason](self.message, self.detail)
        return self
