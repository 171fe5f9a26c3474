import datetime
import decimal
import sqlite3

# Re-export some names from sqliteparser.
from sqliteparser.ast import OnDelete

from . import columns, reports, status
from .database import Database, Debugger, PrintDebugger
from .exceptions import (
    ColumnDoesNotExistError,
    ConstraintViolation,
    ForeignKeyViolation,
    NotFound,
    PlacementCellApiError,
    PlacementCellError,
    TableDoesNotExistError,
    UniqueConstraintViolation,
    ValidationError,
)
from .office import PlacementOffice
from .schema import AutoTable, Index, Schema, Table, View
from .tables import SCHEMA


def sqlite3_convert_boolean(b):
    return b != b"0"


def sqlite3_convert_decimal(b):
    # Every DECIMAL column has two places, and numeric affinity drops trailing zeros
    # (8.00 is stored as 8), so the scale is restored on the way out.
    return decimal.Decimal(b.decode("utf8")).quantize(decimal.Decimal("0.01"))


def sqlite3_adapt_decimal(d):
    return str(d)


def sqlite3_convert_date(b):
    return datetime.date.fromisoformat(b.decode("utf8"))


def sqlite3_adapt_date(d):
    return d.isoformat()


def sqlite3_convert_timestamp(b):
    return datetime.datetime.fromisoformat(b.decode("utf8"))


def sqlite3_adapt_timestamp(dt):
    return dt.isoformat(" ")


sqlite3.register_converter("BOOLEAN", sqlite3_convert_boolean)
sqlite3.register_converter("DECIMAL", sqlite3_convert_decimal)
sqlite3.register_adapter(decimal.Decimal, sqlite3_adapt_decimal)
sqlite3.register_converter("DATE", sqlite3_convert_date)
sqlite3.register_adapter(datetime.date, sqlite3_adapt_date)
sqlite3.register_converter("TIMESTAMP", sqlite3_convert_timestamp)
sqlite3.register_adapter(datetime.datetime, sqlite3_adapt_timestamp)

del sqlite3_convert_boolean
del sqlite3_convert_decimal
del sqlite3_adapt_decimal
del sqlite3_convert_date
del sqlite3_adapt_date
del sqlite3_convert_timestamp
del sqlite3_adapt_timestamp
