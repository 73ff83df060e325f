import pytest

from gestion.core.controller import ControllerSchema
from gestion.forms.schemas import FilterSchema, UpsertSchema
from gestion.resources import (
    BATCHES,
    CATALOGS,
    MOVEMENTS,
    PRODUCTS,
    RESOURCES,
    Column,
    ResourceDefinition,
    get_resource,
)


def test_registry_lookup():
    assert get_resource("products") is PRODUCTS
    with pytest.raises(KeyError):
        get_resource("nope")


@pytest.mark.parametrize("resource", list(RESOURCES.values()), ids=list(RESOURCES))
def test_definitions_are_consistent(resource):
    assert issubclass(resource.filter_schema, FilterSchema)
    assert issubclass(resource.upsert_schema, UpsertSchema)
    upsert_fields = set(resource.upsert_schema.model_fields)
    for field in resource.form_fields:
        assert field.name in upsert_fields
    filter_fields = set(resource.filter_schema.model_fields)
    for field in resource.filter_fields:
        assert field.name in filter_fields
    for source in resource.option_sources:
        assert source in RESOURCES


def test_controller_schema_declares_option_sources():
    schema = PRODUCTS.controller_schema()
    assert isinstance(schema, ControllerSchema)
    assert schema.async_selections == ("brands", "categories", "units")
    assert schema.apis == ("pagination", "detail", "upsert", "delete")


def test_row_id_uses_id_field():
    assert CATALOGS.row_id({"_id": 7, "name": "Summer"}) == "7"
    assert CATALOGS.row_id({"id": "x"}) is None
    assert CATALOGS.row_label({"_id": "c1"}) == "c1"


def test_column_value_follows_dotted_path():
    column = Column("price", "Price", "price.label")
    assert column.value({"price": {"label": "$3.00"}}) == "$3.00"
    assert column.value({"price": None}) is None
    assert Column("name", "Name").value({"name": "Milk"}) == "Milk"


def test_definition_requires_a_write_endpoint():
    with pytest.raises(ValueError):
        ResourceDefinition(
            key="broken",
            title="Broken",
            singular="broken",
            description="",
            list_path="/broken",
            detail_path="/broken/{id}",
            delete_path="/broken/{id}",
            filter_schema=FilterSchema,
            upsert_schema=UpsertSchema,
            columns=(),
            form_fields=(),
            filter_fields=(),
            create_path="/broken",
        )


def test_batches_are_saved_through_batch_upsert():
    assert BATCHES.upsert_path == "/batch-upsert"


def test_read_only_definition_needs_no_write_endpoint():
    assert MOVEMENTS.read_only
    assert MOVEMENTS.detail_path is None
    assert MOVEMENTS.delete_path is None
    assert MOVEMENTS.form_fields == ()
