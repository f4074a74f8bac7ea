"""Helpers for CHECK constraints derived from enum values."""

from sqlalchemy import CheckConstraint


def enum_check(column: str, values: list[str], name: str) -> CheckConstraint:
    """Return ``CHECK (column IN (...))`` over the given values."""
    return CheckConstraint(
        "{} IN ({})".format(
            column,
            ", ".join("'{}'".format(v.replace("'", "''")) for v in values),
        ),
        name=name,
    )
