"""Bulk product import from a spreadsheet and the matching template file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Callable, Dict, List, Mapping, Optional

from gestion.core.controller import ControllerSchema, SetApi, Store
from gestion.core.errors import ApiError, AuthenticationError
from gestion.core.load_state import LoadState

logger = logging.getLogger(__name__)

IMPORT_PATH = "/products-import"
TEMPLATE_PATH = "/products-template"
TEMPLATE_FILE_NAME = "product-import-template.xlsx"

API_IMPORT = "import"
API_TEMPLATE = "template"

ALLOWED_TYPES = {
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
}

IMPORT_SCHEMA = ControllerSchema(
    apis=(API_IMPORT, API_TEMPLATE),
    modals=(),
    buttons=(API_IMPORT, API_TEMPLATE),
    selections=(),
    tables=(),
)


@dataclass(frozen=True)
class ImportResult:
    summary: Dict[str, Any] = field(default_factory=dict)
    errors: List[Any] = field(default_factory=list)

    @classmethod
    def from_payload(cls, body: Any) -> "ImportResult":
        if not isinstance(body, Mapping):
            return cls()
        summary = body.get("summary")
        errors = body.get("errors")
        return cls(
            summary=dict(summary) if isinstance(summary, Mapping) else {},
            errors=list(errors) if isinstance(errors, list) else [],
        )


def file_type(file_name: str) -> Optional[str]:
    """Return the upload MIME type for ``file_name``, ``None`` if not accepted."""
    return ALLOWED_TYPES.get(PurePath(file_name).suffix.lower())


class ProductImport:
    """Uploads product spreadsheets; ``on_imported`` refreshes the list."""

    def __init__(
        self,
        client,
        notifier,
        *,
        on_imported: Optional[Callable[[], Any]] = None,
        store: Optional[Store] = None,
    ) -> None:
        self.client = client
        self.notifier = notifier
        self.on_imported = on_imported
        self.store = store or Store(IMPORT_SCHEMA)
        self.result: Optional[ImportResult] = None
        self.template: Optional[bytes] = None

    @property
    def state(self):
        return self.store.state

    def _report(self, error: ApiError) -> None:
        if isinstance(error, AuthenticationError):
            raise error
        self.notifier.error(error)

    def import_file(self, file_name: str, content: bytes) -> Optional[ImportResult]:
        if self.state.button(API_IMPORT):
            return None
        mime_type = file_type(file_name)
        if mime_type is None:
            self.notifier.error(
                ApiError(
                    "Invalid file format. Only .xlsx, .xls or .csv files are allowed",
                    code="INVALID_FILE",
                )
            )
            return None

        ticket = self.store.begin_request(API_IMPORT)
        self.store.set_api(API_IMPORT, LoadState.LOADING)
        self.store.set_button(API_IMPORT, True)
        try:
            body = self.client.upload(IMPORT_PATH, file_name, content, mime_type)
        except ApiError as exc:
            if self.store.resolve(ticket, SetApi(API_IMPORT, LoadState.ERROR)):
                self._report(exc)
            return None
        finally:
            self.store.set_button(API_IMPORT, False)

        if not self.store.resolve(ticket, SetApi(API_IMPORT, LoadState.OK)):
            return None
        self.result = ImportResult.from_payload(body)
        logger.info(
            "Imported %s: %s, %d rejected rows",
            file_name,
            self.result.summary,
            len(self.result.errors),
        )
        self.notifier.success("Import completed")
        if self.on_imported is not None:
            self.on_imported()
        return self.result

    def download_template(self) -> Optional[bytes]:
        if self.state.button(API_TEMPLATE):
            return None
        ticket = self.store.begin_request(API_TEMPLATE)
        self.store.set_api(API_TEMPLATE, LoadState.LOADING)
        self.store.set_button(API_TEMPLATE, True)
        try:
            content = self.client.download(TEMPLATE_PATH)
        except ApiError as exc:
            if self.store.resolve(ticket, SetApi(API_TEMPLATE, LoadState.ERROR)):
                self._report(exc)
            return None
        finally:
            self.store.set_button(API_TEMPLATE, False)

        if not self.store.resolve(ticket, SetApi(API_TEMPLATE, LoadState.OK)):
            return None
        self.template = content
        self.notifier.success("Template downloaded")
        return content

    def unmount(self) -> None:
        self.store.unmount()


__all__ = ["ImportResult", "ProductImport", "file_type"]
