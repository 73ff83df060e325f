"""pydantic schemas for the filter and upsert forms of each resource.

Field names are snake_case in Python and camelCase on the wire. Filter
schemas turn blank inputs into ``None`` so empty filters are left out of the
list request entirely.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

BatchAction = Literal["increment", "decrement"]
BugStatus = Literal["open", "in-progress", "resolved", "closed"]
CatalogStatus = Literal["DRAFT", "ACTIVE", "INACTIVE", "EXPIRED"]
ReservationStatus = Literal[
    "pending", "confirmed", "checked-in", "checked-out", "cancelled", "completed"
]

BATCH_ACTIONS = get_args(BatchAction)
BUG_STATUSES = get_args(BugStatus)
CATALOG_STATUSES = get_args(CatalogStatus)
RESERVATION_STATUSES = get_args(ReservationStatus)

CustomerStatus = Literal["active", "inactive", "blocked"]
DocumentType = Literal["DNI", "Passport", "RUC", "Other"]
Gender = Literal["", "Male", "Female", "Other"]
MatchType = Literal["ALL", "ANY"]
MovementType = Literal["increment", "decrement"]
SegmentField = Literal[
    "age",
    "registrationDate",
    "firstPurchaseDate",
    "lastPurchaseDate",
    "totalSpent",
    "totalOrders",
    "gender",
    "city",
    "country",
]
SegmentOperator = Literal[
    "equals",
    "notEquals",
    "greaterThan",
    "lessThan",
    "greaterThanOrEqual",
    "lessThanOrEqual",
    "between",
    "contains",
    "in",
]

CUSTOMER_STATUSES = get_args(CustomerStatus)
DOCUMENT_TYPES = get_args(DocumentType)
GENDERS = get_args(Gender)
MATCH_TYPES = get_args(MatchType)
MOVEMENT_TYPES = get_args(MovementType)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
OptionalFlag = Annotated[Optional[bool], BeforeValidator(_blank_to_none)]
OptionalDate = Annotated[Optional[date], BeforeValidator(_blank_to_none)]


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


CsvList = Annotated[List[str], BeforeValidator(_split_csv)]


class Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        """Return the request body in the API's camelCase layout."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class FilterSchema(Schema):
    """Base for list filters; every field is optional."""


class UpsertSchema(Schema):
    id: OptionalText = None

    @classmethod
    def default_values(cls) -> Dict[str, Any]:
        return {
            name: field.get_default(call_default_factory=True)
            for name, field in cls.model_fields.items()
        }

    @classmethod
    def values_from_row(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        """Return form values, keyed by attribute name, read from an API row.

        Related records embedded as objects (``{"id": ..., "name": ...}``)
        are reduced to their id, which is what the upsert endpoints expect.
        """

        values = cls.default_values()
        for name, field in cls.model_fields.items():
            key = field.alias if field.alias in row else name
            if key not in row or row[key] is None:
                continue
            value = row[key]
            if isinstance(value, dict) and "id" in value:
                value = value["id"]
            values[name] = value
        return values


# ─────────────────────────────────────────────────────────
# BRANDS
# ─────────────────────────────────────────────────────────
class BrandFilters(FilterSchema):
    name: OptionalText = None
    is_active: OptionalFlag = None


class BrandUpsert(UpsertSchema):
    name: str = Field("", min_length=1)
    description: Optional[str] = ""


# ─────────────────────────────────────────────────────────
# CATEGORIES
# ─────────────────────────────────────────────────────────
class CategoryFilters(FilterSchema):
    name: OptionalText = None
    is_active: OptionalFlag = None
    parent: OptionalText = None


class CategoryUpsert(UpsertSchema):
    name: str = Field("", min_length=1)
    description: Optional[str] = ""
    parent: OptionalText = None
    is_active: bool = True


# ─────────────────────────────────────────────────────────
# UNITS
# ─────────────────────────────────────────────────────────
class UnitFilters(FilterSchema):
    name: OptionalText = None
    dimension: OptionalText = None
    is_active: OptionalFlag = None


class UnitUpsert(UpsertSchema):
    name: str = Field("", min_length=1)
    symbol: str = Field("", min_length=1)
    dimension: Optional[str] = ""
    base: OptionalText = None
    to_base_factor: float = Field(1, gt=0)


# ─────────────────────────────────────────────────────────
# PRODUCTS
# ─────────────────────────────────────────────────────────
class ProductFilters(FilterSchema):
    sku: OptionalText = None
    name: OptionalText = None
    brand: OptionalText = None
    category: OptionalText = None
    unit: OptionalText = None
    barcode: OptionalText = None
    date_from: OptionalDate = None
    date_to: OptionalDate = None


class ProductUpsert(UpsertSchema):
    name: str = Field("", min_length=1)
    description: Optional[str] = ""
    price: float = Field(0, ge=0)
    currency: str = "USD"
    minimum_stock: float = Field(0, ge=0)
    category: OptionalText = None
    brand: OptionalText = None
    unit: OptionalText = None

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["stock"] = {"minimum": payload.pop("minimumStock", 0)}
        return payload

    @classmethod
    def values_from_row(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        flattened = dict(row)
        price = row.get("price")
        if isinstance(price, dict):
            flattened["price"] = price.get("amount", 0)
            flattened["currency"] = price.get("currency", "USD")
        stock = row.get("stock")
        if isinstance(stock, dict):
            flattened["minimumStock"] = stock.get("minimum", 0)
        return super().values_from_row(flattened)


# ─────────────────────────────────────────────────────────
# BATCHES
# ─────────────────────────────────────────────────────────
class BatchFilters(FilterSchema):
    code: OptionalText = None
    status: OptionalText = None
    date_from: OptionalDate = None
    date_to: OptionalDate = None


class BatchUpsert(UpsertSchema):
    product: str = Field("", min_length=1)
    code: Optional[str] = ""
    expires_at: OptionalDate = None
    quantity: int = Field(1, ge=1, le=999_999)
    action: BatchAction = "increment"
    reason: Optional[str] = ""


# ─────────────────────────────────────────────────────────
# SUPPLIERS
# ─────────────────────────────────────────────────────────
class SupplierFilters(FilterSchema):
    name: OptionalText = None
    is_active: OptionalFlag = None


class SupplierUpsert(UpsertSchema):
    code: str = Field("", min_length=1, pattern=r"^[A-Z0-9_]+$")
    name: str = Field("", min_length=1)
    contact_name: Optional[str] = ""
    email: Optional[str] = Field("", pattern=r"^$|^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = ""
    address: Optional[str] = ""
    description: Optional[str] = ""


# ─────────────────────────────────────────────────────────
# CATALOGS
# ─────────────────────────────────────────────────────────
class CatalogFilters(FilterSchema):
    search: OptionalText = Field(None, max_length=100)
    status: Annotated[Optional[CatalogStatus], BeforeValidator(_blank_to_none)] = None
    is_public: OptionalFlag = None


class CatalogUpsert(UpsertSchema):
    id: OptionalText = Field(None, alias="_id")
    name: str = Field("", min_length=1, max_length=100)
    description: Optional[str] = ""
    status: CatalogStatus = "DRAFT"
    is_public: bool = False
    valid_from: OptionalDate = None
    valid_to: OptionalDate = None

    @field_validator("valid_to")
    @classmethod
    def _valid_range(cls, value: Optional[date], info: ValidationInfo) -> Optional[date]:
        start = info.data.get("valid_from")
        if value is not None and start is not None and value < start:
            raise ValueError("End date must not be before start date")
        return value


# ─────────────────────────────────────────────────────────
# RESERVATIONS
# ─────────────────────────────────────────────────────────
class ReservationFilters(FilterSchema):
    customer_name: OptionalText = None
    status: Annotated[Optional[ReservationStatus], BeforeValidator(_blank_to_none)] = None
    product: OptionalText = None
    check_in_date_from: OptionalDate = None
    check_in_date_to: OptionalDate = None


class ReservationUpsert(UpsertSchema):
    customer_name: str = Field("", min_length=1)
    customer_email: str = Field("", pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    customer_phone: Optional[str] = ""
    customer_document: Optional[str] = ""
    check_in_date: OptionalDate = Field(None, validate_default=True)
    check_out_date: OptionalDate = Field(None, validate_default=True)
    check_in_time: str = Field("14:00", pattern=r"^([01]\d|2[0-3]):([0-5]\d)$")
    check_out_time: str = Field("12:00", pattern=r"^([01]\d|2[0-3]):([0-5]\d)$")
    total_price: float = Field(0, ge=0)
    currency: str = "PEN"
    status: ReservationStatus = "pending"
    notes: Optional[str] = ""

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def _required_date(cls, value: Any) -> Any:
        if _blank_to_none(value) is None:
            raise ValueError("Date is required")
        return value

    @field_validator("check_out_date")
    @classmethod
    def _after_check_in(cls, value: date, info: ValidationInfo) -> date:
        check_in = info.data.get("check_in_date")
        if check_in is not None and value <= check_in:
            raise ValueError("Check-out must be after check-in")
        return value


# ─────────────────────────────────────────────────────────
# BUGS
# ─────────────────────────────────────────────────────────
class BugFilters(FilterSchema):
    code: OptionalText = None
    status: OptionalText = None
    date_from: OptionalDate = None
    date_to: OptionalDate = None


class BugUpsert(UpsertSchema):
    title: str = Field("", min_length=1)
    description: Optional[str] = ""
    status: BugStatus = "open"
    comment: Optional[str] = ""
    module: Optional[str] = ""
    steps_to_reproduce: Optional[str] = ""
    expected_behavior: Optional[str] = ""
    actual_behavior: Optional[str] = ""
    environment: Optional[str] = ""
    tags: CsvList = Field(default_factory=list)


# ─────────────────────────────────────────────────────────
# CUSTOMERS
# ─────────────────────────────────────────────────────────
ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


class CustomerFilters(FilterSchema):
    name: OptionalText = None
    email: OptionalText = None
    status: Annotated[Optional[CustomerStatus], BeforeValidator(_blank_to_none)] = None
    segment: OptionalText = None


class CustomerUpsert(UpsertSchema):
    first_name: str = Field("", min_length=1)
    last_name: str = Field("", min_length=1)
    email: str = Field("", pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = ""
    document_type: DocumentType = "DNI"
    document_number: Optional[str] = ""
    street: Optional[str] = ""
    city: Optional[str] = ""
    state: Optional[str] = ""
    zip_code: Optional[str] = ""
    country: Optional[str] = ""
    company: Optional[str] = ""
    tax_id: Optional[str] = ""
    birth_date: OptionalDate = None
    gender: Gender = ""
    status: CustomerStatus = "active"
    preferred_currency: str = "PEN"
    language: str = "es"
    accepts_marketing: bool = True
    tags: CsvList = Field(default_factory=list)
    notes: Optional[str] = ""

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["address"] = {
            to_camel(name): payload.pop(to_camel(name), "") for name in ADDRESS_FIELDS
        }
        return payload

    @classmethod
    def values_from_row(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        flattened = dict(row)
        if "_id" in row:
            flattened.setdefault("id", row["_id"])
        address = row.get("address")
        if isinstance(address, dict):
            for name in ADDRESS_FIELDS:
                flattened[to_camel(name)] = address.get(to_camel(name), "")
        return super().values_from_row(flattened)


# ─────────────────────────────────────────────────────────
# SEGMENTS
# ─────────────────────────────────────────────────────────
def _scalar(token: str) -> Union[int, float, str]:
    for cast in (int, float):
        try:
            return cast(token)
        except ValueError:
            continue
    return token


def _parse_conditions(value: Any) -> Any:
    """Read conditions typed one per line as ``field operator value``.

    ``between`` takes two values separated by a space and ``in`` takes a
    comma separated list.
    """

    if not isinstance(value, str):
        return value
    conditions = []
    for number, line in enumerate(value.splitlines(), start=1):
        if not line.strip():
            continue
        parts = line.split(maxsplit=2)
        if len(parts) < 3:
            raise ValueError(f"Line {number}: expected 'field operator value'")
        field_name, operator, rest = parts
        condition: Dict[str, Any] = {"field": field_name, "operator": operator}
        if operator == "between":
            bounds = rest.split()
            if len(bounds) != 2:
                raise ValueError(f"Line {number}: 'between' needs two values")
            condition["value"], condition["second_value"] = map(_scalar, bounds)
        elif operator == "in":
            condition["value"] = _split_csv(rest)
        else:
            condition["value"] = _scalar(rest.strip())
        conditions.append(condition)
    return conditions


def format_conditions(conditions: List[Dict[str, Any]]) -> str:
    lines = []
    for condition in conditions:
        value = condition.get("value")
        if isinstance(value, list):
            value = ",".join(str(item) for item in value)
        line = f"{condition.get('field')} {condition.get('operator')} {value}"
        if condition.get("secondValue") is not None:
            line += f" {condition['secondValue']}"
        lines.append(line)
    return "\n".join(lines)


class SegmentCondition(Schema):
    field: SegmentField
    operator: SegmentOperator
    value: Union[int, float, List[str], str]
    second_value: Optional[Union[int, float, str]] = None


class SegmentFilters(FilterSchema):
    search: OptionalText = Field(None, max_length=100)
    is_active: OptionalFlag = None


class SegmentUpsert(UpsertSchema):
    id: OptionalText = Field(None, alias="_id")
    name: str = Field("", min_length=1, max_length=100)
    description: Optional[str] = Field("", max_length=500)
    conditions: Annotated[
        List[SegmentCondition], BeforeValidator(_parse_conditions)
    ] = Field(default_factory=list, min_length=1)
    match_type: MatchType = "ALL"
    is_active: bool = True
    color: str = Field("#3b82f6", pattern=r"^#[0-9A-Fa-f]{6}$")

    @classmethod
    def values_from_row(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        values = super().values_from_row(row)
        if isinstance(row.get("conditions"), list):
            values["conditions"] = format_conditions(row["conditions"])
        return values


# ─────────────────────────────────────────────────────────
# INVENTORY MOVEMENTS (read only)
# ─────────────────────────────────────────────────────────
class MovementFilters(FilterSchema):
    batch: OptionalText = None
    product: OptionalText = None
    type: Annotated[Optional[MovementType], BeforeValidator(_blank_to_none)] = None
    date_from: OptionalDate = None
    date_to: OptionalDate = None
