"""Tests for the generator registry."""

import pytest
from cfm.backends import GENERATORS, NintexFormGenerator, SqlDialect, SqlSchemaGenerator, create_generator
from cfm.config import DEFAULT_TARGET
from cfm.exceptions import CfmError, UnknownTargetError


@pytest.mark.parametrize("name,dialect", [
    ("sql-server", SqlDialect.SQL_SERVER),
    ("mysql", SqlDialect.MYSQL),
    ("postgresql", SqlDialect.POSTGRESQL),
])
def test_sql_targets(name, dialect):
    """SQL targets build a schema generator for their dialect."""
    generator = create_generator(name)
    assert isinstance(generator, SqlSchemaGenerator)
    assert generator.dialect == dialect


def test_nintex_target():
    """The default target is the Nintex form generator."""
    assert isinstance(create_generator(DEFAULT_TARGET), NintexFormGenerator)


def test_names_are_case_insensitive():
    """Target names ignore case and surrounding spaces."""
    assert isinstance(create_generator(" MySQL "), SqlSchemaGenerator)


def test_fresh_instance_per_call():
    """Each call builds a new generator."""
    assert create_generator("mysql") is not create_generator("mysql")


def test_unknown_target():
    """Unknown targets raise UnknownTargetError listing the known ones."""
    with pytest.raises(UnknownTargetError, match="nintex"):
        create_generator("oracle")
    with pytest.raises(CfmError):
        create_generator(None)


def test_registered_targets():
    """All four targets are registered."""
    assert set(GENERATORS) == {"sql-server", "mysql", "postgresql", "nintex"}
