import os
import sys

import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from gestion.config import ApiConfig  # noqa: E402
from gestion.services import option_cache  # noqa: E402


class DummyClient:
    """Stands in for ``ApiClient``; replies are queued per (method, path).

    A queued reply may be a body, an exception to raise, or a callable that
    receives the request payload. The last reply for a route is reused.
    """

    def __init__(self):
        self.config = ApiConfig(base_url="http://api.test")
        self.calls = []
        self.replies = {}

    def reply(self, method, path, *results):
        self.replies.setdefault((method, path), []).extend(results)
        return self

    def _call(self, method, path, payload=None):
        self.calls.append((method, path, payload))
        queue = self.replies.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request {method} {path}")
        result = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(result) and not isinstance(result, Exception):
            result = result(payload)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, path):
        return self._call("GET", path)

    def post(self, path, payload=None):
        return self._call("POST", path, dict(payload or {}))

    def put(self, path, payload=None):
        return self._call("PUT", path, dict(payload or {}))

    def delete(self, path):
        return self._call("DELETE", path)

    def upload(self, path, file_name, content, mime_type):
        return self._call("UPLOAD", path, {"name": file_name, "size": len(content), "type": mime_type})

    def download(self, path):
        return self._call("DOWNLOAD", path)


class DummyNotifier:
    def __init__(self):
        self.successes = []
        self.infos = []
        self.errors = []

    def success(self, message):
        self.successes.append(message)

    def info(self, message):
        self.infos.append(message)

    def error(self, error):
        self.errors.append(error)


def list_body(rows, page=1, per_page=10, total_items=None):
    total_items = len(rows) if total_items is None else total_items
    total_pages = max(1, -(-total_items // per_page))
    return {
        "data": rows,
        "pagination": {
            "page": page,
            "perPage": per_page,
            "totalItems": total_items,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        },
    }


@pytest.fixture
def client():
    return DummyClient()


@pytest.fixture
def notifier():
    return DummyNotifier()


@pytest.fixture(autouse=True)
def _clear_option_cache():
    option_cache.clear_options()
    yield
    option_cache.clear_options()
