"""Errors raised by the API client and helpers to read error envelopes."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .constants import GENERIC_ERROR_CODE, GENERIC_ERROR_MESSAGE, NETWORK_ERROR_CODE


class ApiError(Exception):
    """A failed API call.

    The server reports failures with one of three envelopes::

        {"error": {"code": ..., "message": ..., "details": {...}}}
        {"code": ..., "message": ...}
        {"errors": [{"field": ..., "message": ...}]}

    :meth:`from_payload` accepts any of them and falls back to a generic
    code and message when fields are missing or the body is not JSON.
    """

    def __init__(
        self,
        message: str = GENERIC_ERROR_MESSAGE,
        *,
        code: str = GENERIC_ERROR_CODE,
        status: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
        field_errors: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = dict(details or {})
        self.field_errors = list(field_errors or [])

    @classmethod
    def from_payload(cls, payload: Any, status: Optional[int] = None) -> "ApiError":
        data = payload if isinstance(payload, Mapping) else {}
        nested = data.get("error")
        nested = nested if isinstance(nested, Mapping) else {}
        code = nested.get("code") or data.get("code") or GENERIC_ERROR_CODE
        message = nested.get("message") or data.get("message") or GENERIC_ERROR_MESSAGE
        details = nested.get("details")
        return cls(
            str(message),
            code=str(code),
            status=status,
            details=details if isinstance(details, Mapping) else None,
            field_errors=_field_errors(data.get("errors")),
        )

    @property
    def is_validation(self) -> bool:
        return bool(self.field_errors)

    def errors_by_field(self) -> Dict[str, str]:
        """Return the first message reported for each field."""
        result: Dict[str, str] = {}
        for entry in self.field_errors:
            result.setdefault(entry["field"], entry["message"])
        return result

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class AuthenticationError(ApiError):
    """The session is no longer valid (HTTP 401/403)."""


class NetworkError(ApiError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE, **kwargs: Any) -> None:
        kwargs.setdefault("code", NETWORK_ERROR_CODE)
        super().__init__(message, **kwargs)


def _field_errors(raw: Any) -> List[Dict[str, str]]:
    if not isinstance(raw, list):
        return []
    result = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        result.append(
            {
                "field": str(entry.get("field") or ""),
                "message": str(entry.get("message") or GENERIC_ERROR_MESSAGE),
            }
        )
    return result


__all__ = ["ApiError", "AuthenticationError", "NetworkError"]
