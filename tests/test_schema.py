from __future__ import annotations

import pytest
from models import Address, Department, Employee, Person, Role, Skill
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from query_filter import (
    FieldKind,
    SchemaNavigator,
    SchemaPathError,
    SchemaProvider,
    SQLAlchemySchemaProvider,
    resolve_path,
)

# -- inheritance fixture models ------------------------------------------------


class FleetBase(DeclarativeBase):
    pass


class Depot(FleetBase):
    __tablename__ = "depots"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    city: Mapped[str] = mapped_column(String(50))


class Vehicle(FleetBase):
    __tablename__ = "vehicles"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(20))
    wheels: Mapped[int] = mapped_column(Integer, default=4)
    depot_id: Mapped[int | None] = mapped_column(ForeignKey("depots.id"))
    depot: Mapped[Depot | None] = relationship()

    __mapper_args__ = {"polymorphic_on": "kind", "polymorphic_identity": "vehicle"}


class Truck(Vehicle):
    payload: Mapped[int | None] = mapped_column(Integer)

    __mapper_args__ = {"polymorphic_identity": "truck"}


# -- provider ------------------------------------------------------------------


def test_provider_satisfies_protocol(schema):
    assert isinstance(schema, SchemaProvider)


def test_column_fields(schema):
    name = schema.get_field(Employee, "name")
    assert name.kind is FieldKind.COLUMN
    assert name.is_column
    assert name.declaring_type is Employee
    assert name.python_type is str
    assert isinstance(name.sql_type, String)


def test_enum_column_is_a_column(schema):
    role = schema.get_field(Employee, "role")
    assert role.is_column
    assert role.python_type is Role


def test_single_valued_association(schema):
    department = schema.get_field(Employee, "department")
    assert department.is_association
    assert department.target_type is Department
    assert not department.multi_valued


def test_collection_association_exposes_element_type(schema):
    skills = schema.get_field(Employee, "skills")
    assert skills.is_association
    assert skills.target_type is Skill
    assert skills.multi_valued


def test_unknown_field_is_none(schema):
    assert schema.get_field(Employee, "salary") is None
    assert "department" in schema.field_names(Employee)


def test_association_outside_universe_is_other():
    provider = SQLAlchemySchemaProvider([Employee, Address])
    department = provider.get_field(Employee, "department")
    assert department.kind is FieldKind.OTHER
    assert not department.is_association
    assert provider.get_field(Employee, "address").is_association


def test_inherited_field_reports_declaring_type():
    provider = SQLAlchemySchemaProvider.from_base(FleetBase)
    wheels = provider.get_field(Truck, "wheels")
    assert wheels.is_column
    assert wheels.declaring_type is Vehicle
    assert provider.get_field(Truck, "payload").declaring_type is Truck
    assert provider.get_field(Truck, "depot").declaring_type is Vehicle


def test_unmapped_entity_raises_type_error(schema):
    with pytest.raises(TypeError):
        schema.get_field(object, "name")


# -- navigator -----------------------------------------------------------------


def test_segments_from_field_name(schema):
    navigator = SchemaNavigator(schema)
    assert navigator.segments_for("department_name") == ("department", "name")
    assert navigator.segments_for("name") == ("name",)


def test_explicit_path_wins(schema):
    navigator = SchemaNavigator(schema)
    assert navigator.segments_for("city", ("address", "city")) == ("address", "city")


def test_custom_separator(schema):
    navigator = SchemaNavigator(schema, separator="__")
    assert navigator.segments_for("department__name") == ("department", "name")
    assert navigator.segments_for("first_name") == ("first_name",)


def test_resolve_root_column(schema):
    resolved = SchemaNavigator(schema).resolve(Employee, ("age",))
    assert resolved.steps == ()
    assert resolved.terminal_name == "age"
    assert isinstance(resolved.terminal_type, Integer)


def test_resolve_multi_hop_path(schema):
    resolved = SchemaNavigator(schema).resolve(
        Employee, ("department", "manager", "email")
    )

    assert [s.name for s in resolved.steps] == ["department", "manager"]
    assert [s.owning_type for s in resolved.steps] == [Employee, Department]
    assert [s.target_type for s in resolved.steps] == [Department, Person]
    assert resolved.terminal_name == "email"
    assert resolved.dotted == "department.manager.email"


def test_resolve_through_collection(schema):
    resolved = SchemaNavigator(schema).resolve(Employee, ("skills", "name"))
    assert resolved.steps[0].multi_valued
    assert resolved.steps[0].target_type is Skill


def test_resolve_inherited_association():
    provider = SQLAlchemySchemaProvider.from_base(FleetBase)
    resolved = resolve_path(Truck, ("depot", "city"), provider)
    assert resolved.steps[0].owning_type is Vehicle
    assert resolved.steps[0].target_type is Depot


def test_unknown_segment_suggests_close_names(schema):
    with pytest.raises(SchemaPathError) as exc:
        SchemaNavigator(schema).resolve(Employee, ("departmnt", "name"))

    err = exc.value
    assert err.segment == "departmnt"
    assert err.entity_name == "Employee"
    assert err.reason == SchemaPathError.UNKNOWN_FIELD
    assert "department" in err.suggestions
    assert "Did you mean" in str(err)


def test_column_used_as_hop_is_rejected(schema):
    with pytest.raises(SchemaPathError) as exc:
        SchemaNavigator(schema).resolve(Employee, ("name", "length"))

    assert exc.value.segment == "name"
    assert exc.value.reason == SchemaPathError.EXPECTED_ASSOCIATION
    assert exc.value.suggestions == []


def test_association_used_as_terminal_is_rejected(schema):
    with pytest.raises(SchemaPathError) as exc:
        SchemaNavigator(schema).resolve(Employee, ("department",))

    assert exc.value.reason == SchemaPathError.EXPECTED_COLUMN


def test_unknown_terminal_is_rejected(schema):
    with pytest.raises(SchemaPathError) as exc:
        SchemaNavigator(schema).resolve(Employee, ("department", "nme"))

    assert exc.value.entity_name == "Department"
    assert exc.value.full_path == "department.nme"
    assert exc.value.suggestions == ["name"]


def test_hop_outside_universe_is_rejected():
    provider = SQLAlchemySchemaProvider([Employee])
    with pytest.raises(SchemaPathError) as exc:
        resolve_path(Employee, ("department", "name"), provider)

    assert exc.value.reason == SchemaPathError.NOT_IN_SCHEMA


def test_empty_path_is_rejected(schema):
    with pytest.raises(ValueError):
        SchemaNavigator(schema).resolve(Employee, ())
