import decimal
import unittest

from sqliteparser import ast

from placementcell import OnDelete, columns


class ColumnToSqlTests(unittest.TestCase):
    def test_text_column_to_sql(self):
        self.assertEqual(
            columns.text("phone", required=False),
            ast.Column(
                name="phone",
                definition=ast.ColumnDefinition(
                    type="TEXT",
                    default=ast.String(""),
                    constraints=[ast.NotNullConstraint()],
                ),
            ),
        )

        self.assertEqual(
            columns.text("email", unique=True),
            ast.Column(
                name="email",
                definition=ast.ColumnDefinition(
                    type="TEXT",
                    constraints=[
                        ast.NotNullConstraint(),
                        ast.CheckConstraint(
                            ast.Infix("!=", ast.Identifier("email"), ast.String(""))
                        ),
                        ast.UniqueConstraint(),
                    ],
                ),
            ),
        )

    def test_decimal_column_to_sql(self):
        self.assertEqual(
            columns.decimal("min_cgpa", default=decimal.Decimal("8.00"), min=0),
            ast.Column(
                name="min_cgpa",
                definition=ast.ColumnDefinition(
                    type="DECIMAL",
                    default=ast.String("8.00"),
                    constraints=[
                        ast.NotNullConstraint(),
                        ast.CheckConstraint(
                            ast.Infix(">=", ast.Identifier("min_cgpa"), ast.Integer(0))
                        ),
                    ],
                ),
            ),
        )

    def test_boolean_column_to_sql(self):
        self.assertEqual(
            columns.boolean("is_placed", default=False),
            ast.Column(
                name="is_placed",
                definition=ast.ColumnDefinition(
                    type="BOOLEAN",
                    default=ast.Integer(0),
                    constraints=[ast.NotNullConstraint()],
                ),
            ),
        )

    def test_date_column_to_sql(self):
        self.assertEqual(
            columns.date("placed_on", required=False),
            ast.Column(
                name="placed_on", definition=ast.ColumnDefinition(type="DATE")
            ),
        )

    def test_foreign_key_column_to_sql(self):
        self.assertEqual(
            columns.foreign_key("student_id", "student", on_delete=OnDelete.CASCADE),
            ast.Column(
                name="student_id",
                definition=ast.ColumnDefinition(
                    type="INTEGER",
                    constraints=[
                        ast.NotNullConstraint(),
                        ast.ForeignKeyConstraint(
                            columns=[],
                            foreign_table="student",
                            foreign_columns=[],
                            on_delete=OnDelete.CASCADE,
                        ),
                    ],
                ),
            ),
        )

        column = columns.foreign_key("company_id", "company")
        self.assertEqual(
            column.definition.constraints[1].on_delete, OnDelete.RESTRICT
        )

    def test_primary_key_column_to_sql(self):
        self.assertEqual(
            columns.primary_key("id"),
            ast.Column(
                name="id",
                definition=ast.ColumnDefinition(
                    type="INTEGER",
                    constraints=[
                        ast.NotNullConstraint(),
                        ast.PrimaryKeyConstraint(autoincrement=True),
                    ],
                ),
            ),
        )

    def test_timestamp_column_to_sql(self):
        self.assertEqual(
            columns.timestamp("created_at"),
            ast.Column(
                name="created_at",
                definition=ast.ColumnDefinition(
                    type="TIMESTAMP", constraints=[ast.NotNullConstraint()]
                ),
            ),
        )
