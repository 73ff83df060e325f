"""Registry of the resources managed by list + CRUD pages.

A :class:`ResourceDefinition` bundles everything a page needs: endpoint
layout, identifier field, filter/upsert schemas, table columns and form
fields. Pages look definitions up by key through :func:`get_resource`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from gestion.core.constants import DEFAULT_PER_PAGE
from gestion.core.controller import ControllerSchema
from gestion.forms import schemas
from gestion.forms.schemas import FilterSchema, UpsertSchema


@dataclass(frozen=True)
class Column:
    key: str
    header: str
    path: Optional[str] = None  # dotted path into the row, defaults to key

    def value(self, row: Mapping[str, Any]) -> Any:
        current: Any = row
        for part in (self.path or self.key).split("."):
            if not isinstance(current, Mapping):
                return None
            current = current.get(part)
        return current


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    kind: str = "text"  # text, textarea, number, integer, date, checkbox, select
    options: Tuple[str, ...] = ()
    source: Optional[str] = None  # resource key feeding a select's options
    help: Optional[str] = None


@dataclass(frozen=True)
class ResourceDefinition:
    key: str
    title: str
    singular: str
    description: str
    list_path: str
    filter_schema: Type[FilterSchema]
    upsert_schema: Type[UpsertSchema]
    columns: Tuple[Column, ...]
    form_fields: Tuple[FormField, ...]
    filter_fields: Tuple[FormField, ...]
    detail_path: Optional[str] = None
    delete_path: Optional[str] = None
    upsert_path: Optional[str] = None
    create_path: Optional[str] = None
    update_path: Optional[str] = None
    id_field: str = "id"
    label_field: str = "name"
    per_page: int = DEFAULT_PER_PAGE
    icon: str = "📦"
    read_only: bool = False

    def __post_init__(self) -> None:
        if self.read_only:
            return
        if not (self.detail_path and self.delete_path):
            raise ValueError(f"{self.key}: needs detail and delete paths")
        if not self.upsert_path and not (self.create_path and self.update_path):
            raise ValueError(f"{self.key}: needs upsert_path or create/update paths")

    def row_id(self, row: Optional[Mapping[str, Any]]) -> Optional[str]:
        if not row:
            return None
        value = row.get(self.id_field)
        return str(value) if value not in (None, "") else None

    def row_label(self, row: Optional[Mapping[str, Any]]) -> str:
        if not row:
            return ""
        return str(row.get(self.label_field) or self.row_id(row) or "")

    @property
    def option_sources(self) -> Tuple[str, ...]:
        seen = []
        for form_field in self.form_fields + self.filter_fields:
            if form_field.source and form_field.source not in seen:
                seen.append(form_field.source)
        return tuple(seen)

    def controller_schema(self) -> ControllerSchema:
        return ControllerSchema.crud(
            async_selections=self.option_sources, per_page=self.per_page
        )


_ACTIVE_FILTER = FormField("is_active", "Active only", "checkbox")

BRANDS = ResourceDefinition(
    key="brands",
    title="Brands",
    singular="brand",
    description="Manage the product brands of your inventory.",
    icon="🏷️",
    list_path="/brands",
    detail_path="/brands/{id}",
    upsert_path="/brand-upsert",
    delete_path="/brands/{id}",
    filter_schema=schemas.BrandFilters,
    upsert_schema=schemas.BrandUpsert,
    columns=(
        Column("name", "Name"),
        Column("description", "Description"),
        Column("productsCount", "Products"),
        Column("isActive", "Active"),
        Column("createdAt", "Created"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("description", "Description", "textarea"),
    ),
    filter_fields=(FormField("name", "Name"), _ACTIVE_FILTER),
)

CATEGORIES = ResourceDefinition(
    key="categories",
    title="Categories",
    singular="category",
    description="Organise products into categories and sub-categories.",
    icon="🗂️",
    list_path="/categories",
    detail_path="/categories/{id}",
    upsert_path="/category-upsert",
    delete_path="/categories/{id}",
    filter_schema=schemas.CategoryFilters,
    upsert_schema=schemas.CategoryUpsert,
    columns=(
        Column("name", "Name"),
        Column("parent", "Parent", "parent.name"),
        Column("productsCount", "Products"),
        Column("subCategoriesCount", "Sub-categories"),
        Column("isActive", "Active"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("description", "Description", "textarea"),
        FormField("parent", "Parent category", "select", source="categories"),
        FormField("is_active", "Active", "checkbox"),
    ),
    filter_fields=(FormField("name", "Name"), _ACTIVE_FILTER),
)

UNITS = ResourceDefinition(
    key="units",
    title="Units",
    singular="unit",
    description="Units of measure and their conversion to a base unit.",
    icon="📏",
    list_path="/units",
    detail_path="/units/{id}",
    upsert_path="/unit-upsert",
    delete_path="/units/{id}",
    filter_schema=schemas.UnitFilters,
    upsert_schema=schemas.UnitUpsert,
    columns=(
        Column("name", "Name"),
        Column("symbol", "Symbol"),
        Column("dimension", "Dimension"),
        Column("base", "Base unit", "base.symbol"),
        Column("toBaseFactor", "Factor"),
        Column("productsCount", "Products"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("symbol", "Symbol *"),
        FormField("dimension", "Dimension"),
        FormField("base", "Base unit", "select", source="units"),
        FormField("to_base_factor", "Factor to base", "number"),
    ),
    filter_fields=(FormField("name", "Name"), FormField("dimension", "Dimension")),
)

PRODUCTS = ResourceDefinition(
    key="products",
    title="Products",
    singular="product",
    description="Products, prices and stock thresholds.",
    icon="🛒",
    list_path="/products",
    detail_path="/products/{id}",
    upsert_path="/product-upsert",
    delete_path="/products/{id}",
    filter_schema=schemas.ProductFilters,
    upsert_schema=schemas.ProductUpsert,
    columns=(
        Column("sku", "SKU"),
        Column("name", "Name"),
        Column("brand", "Brand", "brandName"),
        Column("category", "Category", "categoryName"),
        Column("stock", "Stock", "stock.current"),
        Column("price", "Price", "price.label"),
        Column("status", "Status", "status.label"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("description", "Description", "textarea"),
        FormField("price", "Price", "number"),
        FormField("currency", "Currency", "select", options=("USD", "PEN", "EUR")),
        FormField("minimum_stock", "Minimum stock", "number"),
        FormField("brand", "Brand", "select", source="brands"),
        FormField("category", "Category", "select", source="categories"),
        FormField("unit", "Unit", "select", source="units"),
    ),
    filter_fields=(
        FormField("sku", "SKU"),
        FormField("name", "Name"),
        FormField("barcode", "Barcode"),
        FormField("date_from", "Created from", "date"),
        FormField("date_to", "Created to", "date"),
    ),
)

BATCHES = ResourceDefinition(
    key="batches",
    title="Batches",
    singular="batch",
    description="Stock batches with their expiry dates.",
    icon="📦",
    list_path="/batches",
    detail_path="/batches/{id}",
    upsert_path="/batch-upsert",
    delete_path="/batches/{id}",
    filter_schema=schemas.BatchFilters,
    upsert_schema=schemas.BatchUpsert,
    label_field="code",
    columns=(
        Column("code", "Code"),
        Column("product", "Product", "product.name"),
        Column("stock", "Stock"),
        Column("expiresAt", "Expires"),
        Column("status", "Status", "status.label"),
    ),
    form_fields=(
        FormField("product", "Product *", "select", source="products"),
        FormField("code", "Code", help="Generated by the server when left blank."),
        FormField("expires_at", "Expires at", "date"),
        FormField("quantity", "Quantity", "integer"),
        FormField("action", "Action", "select", options=schemas.BATCH_ACTIONS),
        FormField("reason", "Reason", "textarea"),
    ),
    filter_fields=(
        FormField("code", "Code"),
        FormField("status", "Status"),
        FormField("date_from", "From", "date"),
        FormField("date_to", "To", "date"),
    ),
)

SUPPLIERS = ResourceDefinition(
    key="suppliers",
    title="Suppliers",
    singular="supplier",
    description="Maintain the suppliers you purchase from.",
    icon="🤝",
    list_path="/inventory/suppliers/list",
    detail_path="/inventory/suppliers/{id}",
    create_path="/inventory/suppliers",
    update_path="/inventory/suppliers/{id}",
    delete_path="/inventory/suppliers/{id}",
    filter_schema=schemas.SupplierFilters,
    upsert_schema=schemas.SupplierUpsert,
    columns=(
        Column("code", "Code"),
        Column("name", "Name"),
        Column("contactName", "Contact"),
        Column("email", "Email"),
        Column("phone", "Phone"),
        Column("isActive", "Active"),
    ),
    form_fields=(
        FormField("code", "Code *", help="Upper-case letters, digits and underscores."),
        FormField("name", "Name *"),
        FormField("contact_name", "Contact person"),
        FormField("email", "Email"),
        FormField("phone", "Phone"),
        FormField("address", "Address", "textarea"),
        FormField("description", "Notes", "textarea"),
    ),
    filter_fields=(FormField("name", "Name"), _ACTIVE_FILTER),
)

CATALOGS = ResourceDefinition(
    key="catalogs",
    title="Catalogs",
    singular="catalog",
    description="Public and private product catalogs.",
    icon="📚",
    list_path="/catalogs/list",
    detail_path="/catalogs/{id}",
    upsert_path="/catalogs/catalogs-upsert",
    delete_path="/catalogs/{id}",
    id_field="_id",
    filter_schema=schemas.CatalogFilters,
    upsert_schema=schemas.CatalogUpsert,
    columns=(
        Column("code", "Code"),
        Column("name", "Name"),
        Column("status", "Status"),
        Column("isPublic", "Public"),
        Column("views", "Views"),
        Column("orders", "Orders"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("description", "Description", "textarea"),
        FormField("status", "Status", "select", options=schemas.CATALOG_STATUSES),
        FormField("is_public", "Public", "checkbox"),
        FormField("valid_from", "Valid from", "date"),
        FormField("valid_to", "Valid to", "date"),
    ),
    filter_fields=(
        FormField("search", "Search"),
        FormField("status", "Status", "select", options=("",) + schemas.CATALOG_STATUSES),
    ),
)

RESERVATIONS = ResourceDefinition(
    key="reservations",
    title="Reservations",
    singular="reservation",
    description="Customer reservations and their stay dates.",
    icon="🛎️",
    list_path="/reservations",
    detail_path="/reservations/{id}",
    upsert_path="/reservations-upsert",
    delete_path="/reservations/{id}",
    label_field="customerName",
    filter_schema=schemas.ReservationFilters,
    upsert_schema=schemas.ReservationUpsert,
    columns=(
        Column("code", "Code"),
        Column("customerName", "Customer"),
        Column("checkInDate", "Check-in"),
        Column("checkOutDate", "Check-out"),
        Column("totalPrice", "Total"),
        Column("status", "Status"),
    ),
    form_fields=(
        FormField("customer_name", "Customer name *"),
        FormField("customer_email", "Customer email *"),
        FormField("customer_phone", "Phone"),
        FormField("customer_document", "Document"),
        FormField("check_in_date", "Check-in date *", "date"),
        FormField("check_out_date", "Check-out date *", "date"),
        FormField("check_in_time", "Check-in time"),
        FormField("check_out_time", "Check-out time"),
        FormField("total_price", "Total price", "number"),
        FormField("status", "Status", "select", options=schemas.RESERVATION_STATUSES),
        FormField("notes", "Notes", "textarea"),
    ),
    filter_fields=(
        FormField("customer_name", "Customer"),
        FormField("status", "Status", "select", options=("",) + schemas.RESERVATION_STATUSES),
        FormField("check_in_date_from", "Check-in from", "date"),
        FormField("check_in_date_to", "Check-in to", "date"),
    ),
)

BUGS = ResourceDefinition(
    key="bugs",
    title="Bug reports",
    singular="bug report",
    description="Incidents reported from every module.",
    icon="🐞",
    list_path="/bugs",
    detail_path="/bugs/{id}",
    upsert_path="/bugs-upsert",
    delete_path="/bugs/{id}",
    label_field="title",
    filter_schema=schemas.BugFilters,
    upsert_schema=schemas.BugUpsert,
    columns=(
        Column("code", "Code"),
        Column("title", "Title"),
        Column("module", "Module"),
        Column("severity", "Severity", "severityLabel.label"),
        Column("status", "Status", "statusLabel.label"),
        Column("createdAt", "Reported"),
    ),
    form_fields=(
        FormField("title", "Title *"),
        FormField("description", "Description", "textarea"),
        FormField("status", "Status", "select", options=schemas.BUG_STATUSES),
        FormField("module", "Module"),
        FormField("steps_to_reproduce", "Steps to reproduce", "textarea"),
        FormField("expected_behavior", "Expected behaviour", "textarea"),
        FormField("actual_behavior", "Actual behaviour", "textarea"),
        FormField("environment", "Environment"),
        FormField("tags", "Tags", help="Comma separated."),
    ),
    filter_fields=(
        FormField("code", "Code"),
        FormField("status", "Status", "select", options=("",) + schemas.BUG_STATUSES),
        FormField("date_from", "From", "date"),
        FormField("date_to", "To", "date"),
    ),
)

MOVEMENTS = ResourceDefinition(
    key="movements",
    title="Stock movements",
    singular="movement",
    description="Every increment and decrement applied to a batch.",
    icon="🔁",
    list_path="/inventory-movements",
    read_only=True,
    label_field="batch",
    filter_schema=schemas.MovementFilters,
    upsert_schema=UpsertSchema,
    columns=(
        Column("date", "Date"),
        Column("batch", "Batch"),
        Column("product", "Product", "product.name"),
        Column("sku", "SKU", "product.sku"),
        Column("type", "Type"),
        Column("quantity", "Quantity"),
        Column("reason", "Reason"),
    ),
    form_fields=(),
    filter_fields=(
        FormField("batch", "Batch"),
        FormField("product", "Product"),
        FormField("type", "Type", "select", options=("",) + schemas.MOVEMENT_TYPES),
        FormField("date_from", "From", "date"),
        FormField("date_to", "To", "date"),
    ),
)

SEGMENTS = ResourceDefinition(
    key="segments",
    title="Segments",
    singular="segment",
    description="Customer groups defined by purchase and profile conditions.",
    icon="🎯",
    list_path="/segments/list",
    detail_path="/segments/{id}",
    upsert_path="/segments/segments-upsert",
    delete_path="/segments/{id}",
    id_field="_id",
    filter_schema=schemas.SegmentFilters,
    upsert_schema=schemas.SegmentUpsert,
    columns=(
        Column("code", "Code"),
        Column("name", "Name"),
        Column("matchType", "Match"),
        Column("customerCount", "Customers"),
        Column("isActive", "Active"),
        Column("color", "Color"),
    ),
    form_fields=(
        FormField("name", "Name *"),
        FormField("description", "Description", "textarea"),
        FormField(
            "conditions",
            "Conditions *",
            "textarea",
            help="One per line: field operator value, e.g. 'totalSpent greaterThan 500', "
            "'age between 18 30' or 'city in Lima,Cusco'.",
        ),
        FormField("match_type", "Match", "select", options=schemas.MATCH_TYPES),
        FormField("is_active", "Active", "checkbox"),
        FormField("color", "Color", help="Hex colour such as #3b82f6."),
    ),
    filter_fields=(FormField("search", "Search"), _ACTIVE_FILTER),
)

CUSTOMERS = ResourceDefinition(
    key="customers",
    title="Customers",
    singular="customer",
    description="Customer records, contact details and marketing preferences.",
    icon="👥",
    list_path="/customers/list",
    detail_path="/customers/{id}",
    upsert_path="/customers/customers-upsert",
    delete_path="/customers/{id}",
    id_field="_id",
    label_field="fullName",
    filter_schema=schemas.CustomerFilters,
    upsert_schema=schemas.CustomerUpsert,
    columns=(
        Column("code", "Code"),
        Column("fullName", "Name"),
        Column("email", "Email"),
        Column("phone", "Phone"),
        Column("status", "Status"),
        Column("totalOrders", "Orders"),
        Column("totalSpent", "Spent"),
    ),
    form_fields=(
        FormField("first_name", "First name *"),
        FormField("last_name", "Last name *"),
        FormField("email", "Email *"),
        FormField("phone", "Phone"),
        FormField("document_type", "Document type", "select", options=schemas.DOCUMENT_TYPES),
        FormField("document_number", "Document number"),
        FormField("street", "Street"),
        FormField("city", "City"),
        FormField("state", "State"),
        FormField("zip_code", "Zip code"),
        FormField("country", "Country"),
        FormField("company", "Company"),
        FormField("tax_id", "Tax id"),
        FormField("birth_date", "Birth date", "date"),
        FormField("gender", "Gender", "select", options=schemas.GENDERS),
        FormField("status", "Status", "select", options=schemas.CUSTOMER_STATUSES),
        FormField("accepts_marketing", "Accepts marketing", "checkbox"),
        FormField("tags", "Tags", help="Comma separated."),
        FormField("notes", "Notes", "textarea"),
    ),
    filter_fields=(
        FormField("name", "Name"),
        FormField("email", "Email"),
        FormField("status", "Status", "select", options=("",) + schemas.CUSTOMER_STATUSES),
        FormField("segment", "Segment", "select", source="segments"),
    ),
)

RESOURCES: Dict[str, ResourceDefinition] = {
    resource.key: resource
    for resource in (
        PRODUCTS,
        BRANDS,
        CATEGORIES,
        UNITS,
        BATCHES,
        MOVEMENTS,
        SUPPLIERS,
        CATALOGS,
        RESERVATIONS,
        BUGS,
        CUSTOMERS,
        SEGMENTS,
    )
}


def get_resource(key: str) -> ResourceDefinition:
    try:
        return RESOURCES[key]
    except KeyError:
        raise KeyError(f"Unknown resource: {key!r}") from None
