"""Schema-bound filter and upsert forms.

Both forms are plain state holders: the Streamlit widgets write into them and
the page orchestration reads from them. Validation is delegated entirely to
the pydantic schema and reported as a ``{field: message}`` mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from gestion.core.errors import ApiError

from .schemas import FilterSchema, UpsertSchema


@dataclass
class FormResult:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)
    model: Optional[BaseModel] = None


def _field_names(schema: Type[BaseModel]) -> Dict[str, str]:
    """Map both aliases and attribute names to attribute names."""
    names: Dict[str, str] = {}
    for name, info in schema.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def validate(schema: Type[BaseModel], values: Mapping[str, Any]) -> FormResult:
    try:
        model = schema.model_validate(dict(values))
    except ValidationError as exc:
        names = _field_names(schema)
        errors: Dict[str, str] = {}
        for error in exc.errors():
            loc = error.get("loc") or ("__all__",)
            key = names.get(str(loc[0]), str(loc[0]))
            errors.setdefault(key, error.get("msg", "Invalid value"))
        return FormResult(valid=False, errors=errors)
    return FormResult(valid=True, model=model)


class FilterForm:
    """Holds the filter values being edited and the last submitted ones.

    List requests only ever use :attr:`submitted`, so editing a field
    without submitting has no effect on pagination or retries.
    """

    def __init__(self, schema: Type[FilterSchema]) -> None:
        self.schema = schema
        self.draft: Dict[str, Any] = {}
        self.submitted: FilterSchema = schema()
        self.errors: Dict[str, str] = {}

    def edit(self, **values: Any) -> None:
        self.draft.update(values)

    def submit(self, values: Optional[Mapping[str, Any]] = None) -> FormResult:
        if values is not None:
            self.draft = dict(values)
        result = validate(self.schema, self.draft)
        self.errors = result.errors
        if result.valid:
            self.submitted = result.model  # type: ignore[assignment]
        return result

    def clear(self) -> None:
        self.draft = {}
        self.errors = {}
        self.submitted = self.schema()

    def query(self) -> Dict[str, Any]:
        """Return the submitted filters as request fields."""
        return self.submitted.to_payload()


class UpsertForm:
    """Values of the create/edit dialog bound to one resource."""

    def __init__(self, schema: Type[UpsertSchema]) -> None:
        self.schema = schema
        self.values: Dict[str, Any] = schema.default_values()
        self.errors: Dict[str, str] = {}

    @property
    def is_editing(self) -> bool:
        return bool(self.values.get("id"))

    def reset(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self.values = self.schema.default_values()
        if values:
            self.values.update(values)
        self.errors = {}

    def populate(self, row: Mapping[str, Any]) -> None:
        """Fill the form from a detail response."""
        self.values = self.schema.values_from_row(dict(row))
        self.errors = {}

    def update(self, **values: Any) -> None:
        self.values.update(values)

    def validate(self) -> FormResult:
        result = validate(self.schema, self.values)
        self.errors = result.errors
        return result

    def apply_server_errors(self, error: ApiError) -> None:
        """Attach field messages from a rejected submission."""
        names = _field_names(self.schema)
        self.errors = {
            names.get(key, key): message
            for key, message in error.errors_by_field().items()
        }
