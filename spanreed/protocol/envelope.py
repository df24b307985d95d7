"""
Wire data model: request/response envelopes and monitor events, all JSON.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from spanreed.protocol.errors import DecodeError


@dataclass(frozen=True)
class RequestEnvelope:
    request_id: str
    method: str
    params: Any = field(default=None)


@dataclass(frozen=True)
class ResponseEnvelope:
    success: bool
    result: Any = field(default=None)

    @classmethod
    def ok(cls, result: Any = None) -> "ResponseEnvelope":
        return cls(success=True, result=result)

    @classmethod
    def failure(cls, message: str) -> "ResponseEnvelope":
        return cls(success=False, result=message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "result": self.result}


@dataclass(frozen=True)
class MonitorEvent:
    kind: str                      # "heartbeat" | "error"
    user_id: int
    message: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def heartbeat(cls, user_id: int) -> "MonitorEvent":
        return cls(kind="heartbeat", user_id=user_id)

    @classmethod
    def error(cls, user_id: int, message: str) -> "MonitorEvent":
        return cls(kind="error", user_id=user_id, message=message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "user_id": self.user_id, "timestamp": self.timestamp}
        if self.kind == "error":
            data["message"] = self.message
        return data


def decode_request(raw: Union[bytes, str]) -> RequestEnvelope:
    """
    Decode one popped queue element into a RequestEnvelope.

    Raises:
        DecodeError: the payload is not UTF-8 JSON, not an object, or is
            missing a string `method` or `request_id`.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"payload is not valid UTF-8: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DecodeError(f"payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(f"payload must be a JSON object, got {type(data).__name__}")

    for key in ("request_id", "method"):
        if key not in data:
            raise DecodeError(f"payload is missing '{key}'")
        if not isinstance(data[key], str):
            raise DecodeError(f"'{key}' must be a string, got {type(data[key]).__name__}")

    return RequestEnvelope(
        request_id=data["request_id"],
        method=data["method"],
        params=data.get("params"),
    )


def encode_response(response: ResponseEnvelope) -> str:
    """Serialize a response. Never raises: unencodable results become a failure envelope."""
    try:
        return json.dumps(response.to_dict())
    except (TypeError, ValueError, RecursionError) as e:
        return json.dumps(ResponseEnvelope.failure(f"response could not be encoded: {e}").to_dict())


def encode_event(event: MonitorEvent) -> str:
    return json.dumps(event.to_dict())
