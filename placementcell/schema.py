import collections
from typing import TYPE_CHECKING, Dict, List, Sequence, Union

import sqliteparser
from attr import attrib, attrs

from .columns import primary_key as primary_key_column
from .columns import timestamp as timestamp_column
from .exceptions import ColumnDoesNotExistError, TableDoesNotExistError

if TYPE_CHECKING:
    from .database import Database


class Table:
    """
    A class to represent a SQL table as part of a schema defined in Python.
    """

    name: str
    _columns: Dict[str, sqliteparser.ast.Column]

    def __init__(
        self, name: str, columns: Sequence[Union[str, sqliteparser.ast.Column]]
    ) -> None:
        self.name = name
        self._columns = collections.OrderedDict()

        for column in columns:
            if isinstance(column, str):
                column = sqliteparser.parse_column(column)

            self._columns[column.name] = column

    @classmethod
    def from_create_table_statement(
        cls, stmt: sqliteparser.ast.CreateTableStatement
    ) -> "Table":
        return cls(stmt.name, stmt.columns)

    def __getitem__(self, key: str) -> sqliteparser.ast.Column:
        try:
            return self._columns[key]
        except KeyError:
            raise ColumnDoesNotExistError(self.name, key)

    def __contains__(self, key: str) -> bool:
        return key in self._columns

    @property
    def columns(self) -> List[sqliteparser.ast.Column]:
        """
        Returns the columns in the table as a list.
        """
        return list(self._columns.values())

    @property
    def column_names(self) -> List[str]:
        return list(self._columns.keys())


class AutoTable(Table):
    """
    An extension of the ``Table`` class which automatically creates a primary-key column
    called ``id`` and the timestamp columns named in ``timestamps`` (by default
    ``created_at`` and ``updated_at``).
    """

    def __init__(
        self,
        name: str,
        columns: Sequence[Union[str, sqliteparser.ast.Column]],
        *,
        timestamps: Sequence[str] = ("created_at", "updated_at"),
    ) -> None:
        id_column = primary_key_column("id")
        timestamp_columns = [timestamp_column(column) for column in timestamps]
        super().__init__(name, [id_column] + list(columns) + timestamp_columns)
        self.timestamps = list(timestamps)


@attrs(auto_attribs=True)
class Index:
    name: str
    table_name: str
    column_names: List[str]
    unique: bool = False

    def __str__(self):
        return f"{'Unique index' if self.unique else 'Index'} {self.name}"


@attrs(auto_attribs=True)
class View:
    """
    A read-only SQL view. ``select`` is the body of the view, i.e. everything after
    ``CREATE VIEW name AS``.
    """

    name: str
    select: str = attrib(converter=str.strip)

    def __str__(self):
        return f"View {self.name}"


class Schema:
    """
    A class to represent an entire database schema: its tables, plus the indexes and
    views defined on top of them.
    """

    _tables: Dict[str, Table]

    def __init__(
        self,
        tables: List[Table],
        *,
        indexes: List[Index] = [],
        views: List[View] = [],
    ) -> None:
        self._tables = collections.OrderedDict((table.name, table) for table in tables)
        self.indexes = list(indexes)
        self.views = list(views)

    def __getitem__(self, key: str) -> Table:
        try:
            return self._tables[key]
        except KeyError:
            raise TableDoesNotExistError(key)

    def __contains__(self, key: str) -> bool:
        return key in self._tables

    @property
    def tables(self) -> List[Table]:
        """
        Returns the tables in the schema as a list.
        """
        return list(self._tables.values())

    @property
    def table_names(self) -> List[str]:
        """
        Returns the names of the tables in the schema as a list.
        """
        return list(self._tables.keys())

    def create(self, db: "Database") -> List[str]:
        """
        Create every table, index and view of the schema that does not yet exist in the
        database, and return a description of each object created.

        Tables are created in the order they were declared, so a table must come after
        the tables its foreign keys reference. Calling this method on a database that
        already matches the schema is a no-op.
        """
        created = []
        with db.savepoint():
            existing = {
                (row["type"], row["name"])
                for row in db.select("sqlite_master", columns=["type", "name"])
            }

            for table in self.tables:
                if ("table", table.name) not in existing:
                    db.create_table(table.name, [str(c) for c in table.columns])
                    created.append(f"Table {table.name}")

            for index in self.indexes:
                if ("index", index.name) not in existing:
                    db.create_index(
                        index.name,
                        index.table_name,
                        index.column_names,
                        unique=index.unique,
                    )
                    created.append(str(index))

            for view in self.views:
                if ("view", view.name) not in existing:
                    db.create_view(view.name, view.select)
                    created.append(str(view))

        return created
