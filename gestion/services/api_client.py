"""HTTP client for the Gestion API.

Every request carries the ``X-Application-Name`` header and a fresh
``trace`` identifier. Failed calls raise :class:`~gestion.core.errors.ApiError`
(or a subclass); 401/403 responses also drop the persisted account and
settings so the next page load starts signed out.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Mapping, Optional

import requests

from gestion.config import ApiConfig
from gestion.core.constants import AUTH_STORAGE_KEYS
from gestion.core.errors import ApiError, AuthenticationError, NetworkError

logger = logging.getLogger(__name__)

_AUTH_STATUSES = (401, 403)


def _json_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class ApiClient:
    def __init__(
        self,
        config: ApiConfig,
        *,
        session: Optional[requests.Session] = None,
        storage=None,
    ) -> None:
        self.config = config
        self.storage = storage
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "X-Application-Name": config.application_name,
            }
        )

    def url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
        raw: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        With ``raw`` the undecoded response bytes are returned instead, for
        file downloads. ``files`` sends a multipart upload.
        """

        trace = str(uuid.uuid4())
        headers: Dict[str, Optional[str]] = {"trace": trace}
        if files is not None:
            # requests writes the multipart Content-Type with its boundary
            headers["Content-Type"] = None
        logger.debug("%s %s trace=%s", method, path, trace)
        try:
            response = self.session.request(
                method,
                self.url(path),
                json=json,
                files=files,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(str(exc) or "Network request failed") from exc

        if response.status_code in _AUTH_STATUSES:
            logger.warning("%s %s rejected with %s", method, path, response.status_code)
            self._forget_session()
            raise AuthenticationError.from_payload(
                _json_body(response), status=response.status_code
            )
        if not response.ok:
            logger.warning("%s %s returned %s", method, path, response.status_code)
            raise ApiError.from_payload(_json_body(response), status=response.status_code)
        if raw:
            return response.content
        body = _json_body(response)
        return body if body is not None else {}

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("POST", path, json=payload or {})

    def put(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request("PUT", path, json=payload or {})

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def upload(self, path: str, file_name: str, content: bytes, mime_type: str) -> Any:
        """POST ``content`` as the multipart field ``file``."""
        return self.request("POST", path, files={"file": (file_name, content, mime_type)})

    def download(self, path: str) -> bytes:
        return self.request("GET", path, raw=True)

    def _forget_session(self) -> None:
        if self.storage is None:
            return
        for key in AUTH_STORAGE_KEYS:
            self.storage.remove_item(key)


__all__ = ["ApiClient"]
