"""Pydantic models for the HTTP surface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ApiResponse(BaseModel):
    """JSON envelope returned by every device route.

    ``data`` is left out of the serialized body when it is None.

    Examples:
        >>> ApiResponse(message="OK").to_content()
        {'message': 'OK'}
        >>> ApiResponse(message="OK", data=["off", "on", "status"]).to_content()
        {'message': 'OK', 'data': ['off', 'on', 'status']}
    """

    message: str = Field(..., description="Status message")
    data: Any = Field(default=None, description="Payload (list of names or a single value)")

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CommandRequest(BaseModel):
    """JSON body of a command POST."""

    code: StrictStr = Field(default="", description="Data value name (e.g. 'on', 'status')")


class CommandQuery(CommandRequest):
    """Query string of a command POST.

    Unknown parameters are rejected so ``?monkeytest`` is reported as a
    malformed query rather than silently ignored.
    """

    model_config = ConfigDict(extra="forbid")
