"""Pydantic schemas for inbound Vapi server webhooks.

Vapi posts loosely-shaped JSON: tool calls may sit under ``message.toolCallList``
or at the top level, and tool arguments may arrive either as an object or as a
JSON-encoded string. Everything is decoded here, once, before routing.
"""

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventType(StrEnum):
    TOOL_CALLS = "tool-calls"
    FUNCTION_CALL = "function-call"
    END_OF_CALL_REPORT = "end-of-call-report"
    STATUS_UPDATE = "status-update"


class _VapiModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def _decode_arguments(value: Any) -> Any:
    """Accept arguments as a JSON string or an already-parsed object."""
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return value


class ToolFunction(_VapiModel):
    name: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _parse_arguments(cls, value):
        return _decode_arguments(value)


class ToolCall(_VapiModel):
    id: str | None = None
    function: ToolFunction = Field(default_factory=ToolFunction)

    @property
    def function_name(self) -> str | None:
        return self.function.name

    @property
    def arguments(self) -> dict[str, Any]:
        return self.function.arguments


class FunctionCall(_VapiModel):
    """Legacy single ``functionCall`` payload."""
    name: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parse_parameters(cls, value):
        return _decode_arguments(value)


class Customer(_VapiModel):
    name: str | None = None
    number: str | None = None


class CallInfo(_VapiModel):
    id: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    customer: Customer | None = None


class VapiMessage(_VapiModel):
    type: str | None = None
    tool_call_list: list[ToolCall] | None = Field(default=None, alias="toolCallList")
    function_call: FunctionCall | None = Field(default=None, alias="functionCall")
    status: str | None = None

    # end-of-call-report fields
    summary: str | None = None
    transcript: str | None = None
    duration_seconds: int | float | None = Field(default=None, alias="durationSeconds")
    recording_url: str | None = Field(default=None, alias="recordingUrl")
    ended_reason: str | None = Field(default=None, alias="endedReason")
    cost: int | float | None = None
    call: CallInfo | None = None


class WebhookPayload(_VapiModel):
    message: VapiMessage | None = None
    tool_call_list: list[ToolCall] | None = Field(default=None, alias="toolCallList")


# --- Classified events ---


@dataclass(frozen=True)
class ToolCallsEvent:
    calls: list[ToolCall]


@dataclass(frozen=True)
class FunctionCallEvent:
    function_call: FunctionCall | None


@dataclass(frozen=True)
class EndOfCallReportEvent:
    report: VapiMessage


@dataclass(frozen=True)
class StatusUpdateEvent:
    status: str | None


@dataclass(frozen=True)
class UnknownEvent:
    type: str | None


WebhookEvent = ToolCallsEvent | FunctionCallEvent | EndOfCallReportEvent | StatusUpdateEvent | UnknownEvent


def classify_event(payload: WebhookPayload) -> WebhookEvent:
    """Pick the event variant. A tool-call batch wins over the message type tag."""
    message = payload.message or VapiMessage()
    calls = message.tool_call_list or payload.tool_call_list
    if calls:
        return ToolCallsEvent(calls=calls)

    if message.type == EventType.FUNCTION_CALL:
        return FunctionCallEvent(function_call=message.function_call)
    if message.type == EventType.END_OF_CALL_REPORT:
        return EndOfCallReportEvent(report=message)
    if message.type == EventType.STATUS_UPDATE:
        return StatusUpdateEvent(status=message.status)
    return UnknownEvent(type=message.type)
