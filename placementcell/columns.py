import decimal as _decimal
from typing import Any, List, Optional

from sqliteparser import ast


def _base(
    name: str,
    type: str,
    *,
    required: bool = True,
    default: Optional[Any] = None,
    unique: bool = False,
    constraints=None,
) -> ast.Column:
    constraints = list(constraints) if constraints else []
    if required:
        constraints = [_not_null_constraint()] + constraints

    if unique:
        constraints.append(ast.UniqueConstraint())

    return ast.Column(
        name=name,
        definition=ast.ColumnDefinition(
            type=type,
            default=_convert_default(default),
            constraints=constraints,
        ),
    )


def boolean(
    name: str, *, required: bool = True, default: Optional[bool] = None
) -> ast.Column:
    """
    A ``BOOLEAN`` column.

    Note that SQLite lacks a built-in boolean type, and instead represents boolean
    values as ``0`` or ``1``.
    """
    return _base(name, "BOOLEAN", required=required, default=default)


def date(name: str, *, required: bool = True, unique: bool = False) -> ast.Column:
    """
    A ``DATE`` column for values in ISO 8601 format, e.g. ``2025-04-17``.
    """
    return _base(name, "DATE", required=required, unique=unique)


def decimal(
    name: str,
    *,
    required: bool = True,
    default: Optional[_decimal.Decimal] = None,
    min: Optional[int] = None,
) -> ast.Column:
    """
    A ``DECIMAL`` column. Values are returned as ``decimal.Decimal`` objects.

    SQLite gives ``DECIMAL`` columns numeric affinity, so comparisons between two
    decimal columns (e.g. ``cgpa >= min_cgpa``) are numeric rather than textual.
    """
    constraints = []
    if min is not None:
        constraints.append(_check_operator_constraint(name, ">=", ast.Integer(min)))

    return _base(
        name, "DECIMAL", required=required, default=default, constraints=constraints
    )


def foreign_key(
    name: str,
    foreign_table: str,
    *,
    required: bool = True,
    on_delete=ast.OnDelete.RESTRICT,
) -> ast.Column:
    """
    A foreign key column referencing the primary key of ``foreign_table``.

    Deletion is restricted by default: a referenced row cannot be deleted until every
    row pointing at it is gone.
    """
    constraints = [
        ast.ForeignKeyConstraint(
            columns=[],
            foreign_table=foreign_table,
            foreign_columns=[],
            on_delete=on_delete,
        )
    ]
    return _base(name, "INTEGER", required=required, constraints=constraints)


def primary_key(name: str, *, autoincrement: bool = True) -> ast.Column:
    """
    A primary key column.
    """
    constraints = [
        ast.PrimaryKeyConstraint(autoincrement=autoincrement),
    ]
    return _base(name, "INTEGER", required=True, constraints=constraints)


def text(
    name: str,
    *,
    required: bool = True,
    default: Optional[str] = None,
    unique: bool = False,
) -> ast.Column:
    """
    A ``TEXT`` column.

    There are two possible "empty" values for a ``TEXT`` column: the empty string and
    ``NULL``. To avoid confusion, this function always returns a ``NOT NULL`` column
    so that the only possible empty value is the empty string.
    """
    if not required and default is None:
        default = ""

    constraints: List[Any] = [_not_null_constraint()]

    if required:
        constraints.append(_not_empty_constraint(name))

    if unique:
        constraints.append(ast.UniqueConstraint())

    return ast.Column(
        name=name,
        definition=ast.ColumnDefinition(
            type="TEXT",
            default=_convert_default(default),
            constraints=constraints,
        ),
    )


def timestamp(name: str, *, required: bool = True) -> ast.Column:
    """
    A ``TIMESTAMP`` column for values in ISO 8601 format, e.g.
    ``2025-04-17 09:30:00.000``.
    """
    return _base(name, "TIMESTAMP", required=required)


def _not_null_constraint():
    return ast.NotNullConstraint()


def _not_empty_constraint(name: str):
    return _check_operator_constraint(name, "!=", ast.String(""))


def _check_operator_constraint(name: str, operator: str, value):
    return ast.CheckConstraint(
        expr=ast.Infix(operator=operator, left=ast.Identifier(name), right=value)
    )


def _convert_default(default: Any):
    if default is not None:
        if isinstance(default, str):
            return ast.String(default)
        elif isinstance(default, bool):
            return ast.Integer(int(default))
        elif isinstance(default, int):
            return ast.Integer(default)
        elif isinstance(default, _decimal.Decimal):
            # Numeric affinity turns the string literal back into a number on insert.
            return ast.String(str(default))

    return default
