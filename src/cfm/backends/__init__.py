"""
Backends for CFM output generation (SQL schema scripts, Nintex forms).

Generators are looked up by target name in GENERATORS; new targets are
added by registering a factory, not by editing the orchestrator.
"""

from typing import Callable, Dict

from cfm.exceptions import UnknownTargetError

from .base import FormGenerator
from .form_generator import NintexFormGenerator
from .sql_generator import ScriptType, SqlDialect, SqlSchemaGenerator, SqlScript

GENERATORS: Dict[str, Callable[[], FormGenerator]] = {
    "sql-server": lambda: SqlSchemaGenerator(SqlDialect.SQL_SERVER),
    "mysql": lambda: SqlSchemaGenerator(SqlDialect.MYSQL),
    "postgresql": lambda: SqlSchemaGenerator(SqlDialect.POSTGRESQL),
    "nintex": NintexFormGenerator,
}


def available_targets():
    return sorted(GENERATORS)


def create_generator(name: str) -> FormGenerator:
    """
    Build a generator for a target name.

    Raises:
        UnknownTargetError: If no generator is registered under name
    """
    try:
        factory = GENERATORS[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownTargetError(
            f"Unknown target '{name}'. Available: {', '.join(available_targets())}"
        ) from None
    return factory()


__all__ = [
    "FormGenerator",
    "GENERATORS",
    "NintexFormGenerator",
    "ScriptType",
    "SqlDialect",
    "SqlSchemaGenerator",
    "SqlScript",
    "available_targets",
    "create_generator",
]
