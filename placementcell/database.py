import collections
import itertools
import sqlite3
import textwrap
import warnings
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import sqliteparser
from sqliteparser import quote

from .exceptions import (
    ColumnDoesNotExistError,
    ConstraintViolation,
    ForeignKeyViolation,
    PlacementCellApiError,
    PlacementCellError,
    UniqueConstraintViolation,
)
from .schema import Schema, Table

CURRENT_TIMESTAMP_SQL = "STRFTIME('%Y-%m-%d %H:%M:%f', 'now')"
# Stamped automatically when the table has them.
INSERT_TIMESTAMP_COLUMNS = ("created_at", "updated_at")
UPDATE_TIMESTAMP_COLUMNS = ("updated_at",)


# Type aliases
Row = Dict[str, Any]
Rows = List[Dict]

_savepoint_counter = itertools.count(1)


class Database:
    """
    A connection to a placement office database file.

    Opened as a context manager, the connection starts a transaction that is committed
    when the block ends normally and rolled back when it raises::

        with Database("placements.sqlite3") as db:
            ...

    With ``transaction=False`` the connection is in autocommit mode instead, and each
    ``savepoint`` block is its own transaction::

        with Database("placements.sqlite3", transaction=False) as db:
            with db.savepoint():
                ...

    Foreign keys are always enforced.
    """

    connection: sqlite3.Connection
    cursor: sqlite3.Cursor
    debugger: Optional["Debugger"]
    schema: Schema

    def __init__(
        self,
        path: str,
        *,
        transaction: bool = True,
        readonly: bool = False,
        debugger: Union["Debugger", bool, None] = None,
    ) -> None:
        """
        :param path: Path to the database file, or ``":memory:"``.
        :param transaction: Whether to open a transaction straight away (see the class
            docstring).
        :param readonly: Open the file read-only; any write raises
            ``sqlite3.OperationalError``.
        :param debugger: ``True`` to print every statement with ``PrintDebugger``, or
            any ``Debugger`` instance.
        """
        if path == ":memory":
            warnings.warn("Did you mean to pass `:memory:` instead of `:memory`?")

        uri = f"file:{path}?mode=ro" if readonly else f"file:{path}"
        self.connection = sqlite3.connect(
            uri,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            uri=True,
            # Transactions are managed explicitly with BEGIN and SAVEPOINT, so the
            # implicit transactions of the sqlite3 module are turned off.
            isolation_level=None,
        )
        self.connection.row_factory = ordered_dict_row_factory
        self.cursor = self.connection.cursor()

        if debugger is True:
            debugger = PrintDebugger()
        elif debugger is False:
            debugger = None
        self.debugger = debugger

        # Has no effect inside a transaction: https://sqlite.org/pragma.html
        self.sql("PRAGMA foreign_keys = 1")

        if transaction:
            self.sql("BEGIN")

        self.refresh_schema()

    def select(
        self,
        table: str,
        *,
        columns: List[str] = [],
        where: str = "",
        values: Dict[str, Any] = {},
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Optional[Union[Tuple[str, ...], List[str], str]] = None,
        descending: Optional[bool] = None,
        get_related: Union[List[str], bool] = [],
    ) -> Rows:
        """
        Query a table or view and return the matching rows.

        :param table: Table or view name. Interpolated into the SQL as-is, so it must
            never come from user input.
        :param columns: Columns to return; all of them if empty.
        :param where: SQL condition without the ``WHERE`` keyword. Use ``:name``
            placeholders and pass the values in ``values``.
        :param values: Values for the placeholders in ``where``.
        :param limit: Maximum number of rows.
        :param offset: Rows to skip; only valid together with ``limit``.
        :param order_by: A column, raw SQL ordering expression, or a sequence of
            column names.
        :param descending: Sort in descending order; only valid with ``order_by``.
        :param get_related: Foreign-key columns to replace with the row they point
            to, or ``True`` for all of them.
        """
        if order_by:
            if isinstance(order_by, (tuple, list)):
                order_by = ", ".join(map(quote, order_by))

            direction = "DESC" if descending is True else "ASC"
            order_clause = f"ORDER BY {order_by} {direction}"
        elif descending is not None:
            raise PlacementCellApiError("`descending` requires `order_by` to be set.")
        else:
            order_clause = ""

        if limit is not None:
            limit_clause = f"LIMIT {int(limit)}"
            if offset is not None:
                limit_clause += f" OFFSET {int(offset)}"
        elif offset is not None:
            raise PlacementCellApiError("`offset` requires `limit` to be set.")
        else:
            limit_clause = ""

        where_clause = f"WHERE {where}" if where else ""

        if get_related:
            selection, joins = self._get_related_columns_and_joins(
                table, columns, get_related
            )
        else:
            selection = ", ".join(map(quote, columns)) if columns else "*"
            joins = ""

        return self.sql(
            f"SELECT {selection} FROM {quote(table)} {joins} {where_clause}"
            + f" {order_clause} {limit_clause}",
            values,
        )

    def get(
        self,
        table: str,
        *,
        columns: List[str] = [],
        where: str = "",
        values: Dict[str, Any] = {},
        order_by: Optional[Union[Tuple[str, ...], List[str], str]] = None,
        descending: Optional[bool] = None,
        get_related: Union[List[str], bool] = [],
    ) -> Optional[Row]:
        """
        Like ``select``, but return only the first row, or ``None``.
        """
        rows = self.select(
            table,
            columns=columns,
            where=where,
            values=values,
            order_by=order_by,
            descending=descending,
            limit=1,
            get_related=get_related,
        )
        return rows[0] if rows else None

    def get_by_pk(
        self,
        table: str,
        pk: int,
        *,
        columns: List[str] = [],
        get_related: Union[List[str], bool] = [],
    ) -> Optional[Row]:
        return self.get(
            table,
            columns=columns,
            where=f"{quote(table)}.rowid = :pk",
            values={"pk": pk},
            get_related=get_related,
        )

    def count(self, table: str, *, where: str = "", values: Dict[str, Any] = {}) -> int:
        where_clause = f"WHERE {where}" if where else ""
        result = self.sql(
            f"SELECT COUNT(*) FROM {quote(table)} {where_clause}",
            values,
            as_tuple=True,
            multiple=False,
        )
        return result[0]

    def insert(self, table: str, data: Row) -> int:
        """
        Insert a row and return its primary key.

        ``created_at`` and ``updated_at`` are set to the current time if the table has
        them and ``data`` does not.
        """
        keys = list(data.keys())
        placeholders = [f":v{i}" for i in range(len(keys))]
        values = {f"v{i}": value for i, value in enumerate(data.values())}

        for column in self._timestamp_columns(table, INSERT_TIMESTAMP_COLUMNS, data):
            keys.append(column)
            placeholders.append(CURRENT_TIMESTAMP_SQL)

        self._execute(
            f"INSERT INTO {quote(table)}({', '.join(map(quote, keys))}) "
            + f"VALUES ({', '.join(placeholders)})",
            values,
        )
        return self.cursor.lastrowid

    def update(
        self,
        table: str,
        data: Row,
        *,
        where: str = "",
        values: Dict[str, Any] = {},
    ) -> int:
        """
        Update the rows matching ``where`` and return how many there were.
        ``updated_at`` is set to the current time if the table has it.
        """
        values = dict(values)
        assignments = []
        for key, value in data.items():
            placeholder = f"v{len(values)}"
            values[placeholder] = value
            assignments.append(f"{quote(key)} = :{placeholder}")

        for column in self._timestamp_columns(table, UPDATE_TIMESTAMP_COLUMNS, data):
            assignments.append(f"{quote(column)} = {CURRENT_TIMESTAMP_SQL}")

        if not assignments:
            raise PlacementCellApiError(f"nothing to update in table {table!r}")

        where_clause = f"WHERE {where}" if where else ""
        self._execute(
            f"UPDATE {quote(table)} SET {', '.join(assignments)} {where_clause}", values
        )
        return self.cursor.rowcount

    def update_by_pk(self, table: str, pk: int, data: Row) -> bool:
        """
        Update one row and return whether it exists.
        """
        return bool(
            self.update(
                table, data, where=f"{quote(table)}.rowid = :pk", values={"pk": pk}
            )
        )

    def delete(self, table: str, *, where: str, values: Dict[str, Any] = {}) -> int:
        """
        Delete the rows matching ``where`` and return how many there were.

        ``where`` may not be empty; pass ``where="1"`` to empty the table on purpose.
        """
        if not where:
            raise PlacementCellApiError(
                'refusing to delete without a `where` condition (use `where="1"` to '
                + "delete every row)"
            )
        self._execute(f"DELETE FROM {quote(table)} WHERE {where}", values)
        return self.cursor.rowcount

    def delete_by_pk(self, table: str, pk: int) -> bool:
        return bool(
            self.delete(table, where=f"{quote(table)}.rowid = :pk", values={"pk": pk})
        )

    def sql(
        self,
        query: str,
        values: Dict[str, Any] = {},
        *,
        as_tuple: bool = False,
        multiple: bool = True,
    ) -> Any:
        """
        Run a raw SQL statement.

        :param as_tuple: Return rows as tuples rather than dictionaries.
        :param multiple: Return a list of rows if true, otherwise only the first row
            (or ``None``).
        """
        if not multiple:
            query += " LIMIT 1"

        self._execute(query, values)
        if multiple:
            rows = self.cursor.fetchall()
            return [tuple(row.values()) for row in rows] if as_tuple else rows

        row = self.cursor.fetchone()
        if row is not None and as_tuple:
            return tuple(row.values())

        return row

    def create_table(self, table_name: str, columns: List[str]) -> None:
        """
        :param columns: Column definitions as SQL strings.
        """
        if isinstance(columns, str):
            raise PlacementCellApiError(
                "`columns` must be a list of column definitions, not a string"
            )

        self.sql(f"CREATE TABLE {quote(table_name)}({', '.join(map(str, columns))})")
        self.refresh_schema()

    def create_index(
        self,
        index_name: str,
        table_name: str,
        column_names: List[str],
        *,
        unique: bool = False,
    ) -> None:
        unique_keyword = "UNIQUE " if unique else ""
        self.sql(
            f"CREATE {unique_keyword}INDEX {quote(index_name)} ON {quote(table_name)}"
            + f"({', '.join(map(quote, column_names))})"
        )

    def create_view(self, view_name: str, select: str) -> None:
        self.sql(f"CREATE VIEW {quote(view_name)} AS {select}")

    def refresh_schema(self) -> None:
        """
        Re-read the table definitions from ``sqlite_master``. They decide which
        timestamp columns are filled in and how ``get_related`` joins. ``create_table``
        calls this itself; call it after changing tables any other way.
        """
        self.schema = self._get_schema_from_database()

    def savepoint(self) -> "SavepointContextManager":
        """
        A block that is applied entirely or not at all. If an exception escapes it, its
        writes are rolled back and the exception propagates.

        Savepoints nest. The outermost one, when no transaction is open, starts a
        write transaction up front and commits it at the end. The write lock is
        therefore taken before the first statement runs. A connection busy writing
        elsewhere makes it wait, and raises ``sqlite3.OperationalError`` ("database is
        locked") only once the wait times out, before anything has been read or
        written.
        """
        return SavepointContextManager(self)

    def commit(self) -> None:
        self.sql("COMMIT")

    def rollback(self) -> None:
        self.sql("ROLLBACK")

    @property
    def in_transaction(self) -> bool:
        return self.connection.in_transaction

    def close(self) -> None:
        """
        Close the connection, committing any open transaction first.
        """
        if self.in_transaction:
            self.commit()
        self.connection.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if self.in_transaction:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()

        self.close()

    def _execute(self, sql: str, values: Any) -> None:
        if self.debugger:
            self.debugger.execute(sql, values)

        try:
            self.cursor.execute(sql, values)
        except sqlite3.IntegrityError as e:
            raise translate_integrity_error(e) from e

    def _timestamp_columns(
        self, table: str, candidates: Sequence[str], data: Row
    ) -> List[str]:
        if table not in self.schema:
            return []

        table_schema = self.schema[table]
        return [
            column
            for column in candidates
            if column in table_schema and column not in data
        ]

    def _get_related_columns_and_joins(
        self,
        table: str,
        columns_to_select: List[str],
        get_related: Union[List[str], bool],
    ) -> Tuple[str, str]:
        table_schema = self.schema[table]
        if get_related is True:
            # Self-references are skipped: joining a table to itself would make every
            # column name ambiguous.
            related = {
                column.name
                for column in table_schema.columns
                if is_foreign_key_column(column)
                and get_foreign_key_model(column) != table
            }
        elif get_related is False:
            related = set()
        else:
            related = set(get_related)

        columns_list = []
        joins_list = []
        for column in table_schema.columns:
            if columns_to_select and column.name not in columns_to_select:
                continue

            if column.name not in related:
                columns_list.append(f"{quote(table)}.{quote(column.name)}")
                continue

            related.remove(column.name)
            foreign_table = get_foreign_key_model(column)
            if foreign_table is None:
                raise PlacementCellError(
                    f"{column.name!r} was passed in `get_related`, "
                    + "but it is not a foreign key column"
                )

            for related_column in self.schema[foreign_table].columns:
                alias = f"{column.name}____{related_column.name}"
                columns_list.append(
                    f"{quote(foreign_table)}.{quote(related_column.name)} "
                    + f"AS {quote(alias)}"
                )

            joins_list.append(
                f"LEFT JOIN {quote(foreign_table)} ON "
                + f"{quote(table)}.{quote(column.name)} = {quote(foreign_table)}.id"
            )

        # Whatever is left over is not a column of the table at all.
        if related:
            raise ColumnDoesNotExistError(table, related.pop())

        return ", ".join(columns_list), "\n".join(joins_list)

    def _get_schema_from_database(self) -> Schema:
        return Schema(
            [
                Table.from_create_table_statement(sqliteparser.parse(row["sql"])[0])
                for row in self.select(
                    "sqlite_master", where="type = 'table' AND NOT name LIKE 'sqlite_%'"
                )
            ]
        )


class SavepointContextManager:
    def __init__(self, db: Database) -> None:
        self.db = db
        self.name = f"placementcell_{next(_savepoint_counter)}"
        self.outermost = False

    def __enter__(self):
        self.outermost = not self.db.in_transaction
        if self.outermost:
            self.db.sql("BEGIN IMMEDIATE")

        self.db.sql(f"SAVEPOINT {self.name}")

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if exc_type is not None:
            # ROLLBACK TO keeps the savepoint open; it still has to be released.
            self.db.sql(f"ROLLBACK TO {self.name}")

        self.db.sql(f"RELEASE {self.name}")

        if self.outermost:
            self.db.commit()


def translate_integrity_error(error: sqlite3.IntegrityError) -> ConstraintViolation:
    message = str(error)
    if message.startswith("UNIQUE constraint failed"):
        return UniqueConstraintViolation(message)
    elif message.startswith("FOREIGN KEY constraint failed"):
        return ForeignKeyViolation(message)
    else:
        return ConstraintViolation(message)


def ordered_dict_row_factory(cursor: sqlite3.Cursor, row: Tuple[Any]) -> Row:
    r: Row = collections.OrderedDict()

    for i, column in enumerate(cursor.description):
        name = column[0]
        value = row[i]

        # `get_related` aliases the columns of a joined row as
        # {foreign_key_column}____{related_column}, e.g. `department_id____name`. They
        # are folded back into a nested dictionary under `department_id`.
        if "____" not in name:
            r[name] = value
            continue

        base_name, child_name = name.split("____", maxsplit=1)
        nested = r.get(base_name)
        if nested is None:
            # The related `id` comes first, so a null foreign key is seen on the first
            # aliased column and the whole related row becomes None.
            if base_name in r or value is None:
                r[base_name] = None
            else:
                r[base_name] = collections.OrderedDict([(child_name, value)])
        else:
            nested[child_name] = value

    return r


def is_foreign_key_column(column: sqliteparser.ast.Column) -> bool:
    return get_foreign_key_model(column) is not None


def get_foreign_key_model(column: sqliteparser.ast.Column) -> Optional[str]:
    for constraint in column.definition.constraints:
        if isinstance(constraint, sqliteparser.ast.ForeignKeyConstraint):
            return constraint.foreign_table

    return None


class Debugger(ABC):
    @abstractmethod
    def execute(self, sql: str, values: Any) -> None:
        pass


class PrintDebugger(Debugger):
    def execute(self, sql: str, values: Any) -> None:
        print()
        print("=== SQL DEBUGGER ===")
        print()
        print(textwrap.indent(textwrap.dedent(sql).strip(), "  "))
        print()
        print(textwrap.indent(f"Values: {values!r}", "  "))
        print()
        print("=== END SQL DEBUGGER ===")
