"""Remote calls shared by every resource page.

Each function takes the :class:`~gestion.services.api_client.ApiClient` and
the :class:`~gestion.resources.ResourceDefinition` describing where the
resource lives. Errors propagate as :class:`~gestion.core.errors.ApiError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Tuple

from gestion.core.errors import ApiError
from gestion.core.pagination import Pagination, paginate_rows

logger = logging.getLogger(__name__)

OPTIONS_PER_PAGE = 100


def _rows(body: Any) -> List[Dict[str, Any]]:
    data = body.get("data") if isinstance(body, Mapping) else None
    if data is None:
        return []
    if not isinstance(data, list):
        raise ApiError("Malformed list response", code="BAD_RESPONSE")
    return data


def list_rows(
    client, resource, filters: Mapping[str, Any], page: int, per_page: int
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """Fetch one page of ``resource`` rows matching ``filters``.

    Endpoints that answer without a pagination envelope return every row;
    those are sliced here so the table still shows ``per_page`` at a time.
    """

    body = client.post(resource.list_path, {**filters, "page": page, "perPage": per_page})
    rows = _rows(body)
    payload = body.get("pagination") if isinstance(body, Mapping) else None
    if isinstance(payload, Mapping):
        return rows, Pagination(page=page, per_page=per_page).merge(payload)
    logger.debug("%s list returned no pagination; paging locally", resource.key)
    collection = paginate_rows(rows, page, per_page)
    return list(collection.rows), collection.pagination


def get_detail(client, resource, row_id: str) -> Dict[str, Any]:
    """Return one record; bodies with and without a ``data`` envelope are accepted."""

    body = client.get(resource.detail_path.format(id=row_id))
    if isinstance(body, Mapping):
        data = body.get("data", body)
        if isinstance(data, Mapping) and data:
            return dict(data)
    raise ApiError("Malformed detail response", code="BAD_RESPONSE")


def upsert(client, resource, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Create or update a record and return the success envelope."""

    row_id = payload.get(resource.id_field)
    if resource.upsert_path:
        body = client.post(resource.upsert_path, payload)
    elif row_id:
        body = client.put(resource.update_path.format(id=row_id), payload)
    else:
        body = client.post(resource.create_path, payload)
    return body if isinstance(body, dict) else {}


def delete(client, resource, row_id: str) -> Dict[str, Any]:
    body = client.delete(resource.delete_path.format(id=row_id))
    return body if isinstance(body, dict) else {}


def list_options(client, resource) -> List[Dict[str, Any]]:
    """Return the first page of rows used to fill a dropdown."""
    rows, _ = list_rows(client, resource, {}, 1, OPTIONS_PER_PAGE)
    return rows
