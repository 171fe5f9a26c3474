class PlacementCellError(Exception):
    pass


class PlacementCellApiError(PlacementCellError):
    pass


class ColumnDoesNotExistError(PlacementCellError):
    pass


class TableDoesNotExistError(PlacementCellError):
    pass


class ValidationError(PlacementCellError):
    pass


class ConstraintViolation(PlacementCellError):
    """
    Raised when SQLite rejects a write because of a NOT NULL, CHECK, UNIQUE or FOREIGN
    KEY constraint. The original ``sqlite3.IntegrityError`` is chained as the cause.
    """


class UniqueConstraintViolation(ConstraintViolation):
    pass


class ForeignKeyViolation(ConstraintViolation):
    pass


class NotFound(PlacementCellError):
    def __init__(self, table: str, pk: int) -> None:
        super().__init__(f"Row {pk} not found in table {table!r}.")
        self.table = table
        self.pk = pk
