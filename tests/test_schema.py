import unittest

from placementcell import (
    SCHEMA,
    AutoTable,
    ColumnDoesNotExistError,
    Database,
    Index,
    Schema,
    TableDoesNotExistError,
    View,
    columns,
)


class SchemaTests(unittest.TestCase):
    def setUp(self):
        self.db = Database(":memory:", transaction=False)

    def tearDown(self):
        self.db.close()

    def test_create(self):
        created = SCHEMA.create(self.db)

        self.assertEqual(
            created,
            [
                "Table department",
                "Table industry",
                "Table company",
                "Table student",
                "Table placement",
                "Unique index placement_student_company",
                "Index placement_company",
                "Index company_min_cgpa",
                "View vw_placement_details",
                "View vw_dept_placement_counts",
                "View vw_student_eligibility",
            ],
        )

        objects = {
            (row["type"], row["name"])
            for row in self.db.select("sqlite_master", columns=["type", "name"])
        }
        self.assertIn(("index", "placement_student_company"), objects)
        self.assertIn(("view", "vw_student_eligibility"), objects)

    def test_create_is_idempotent(self):
        SCHEMA.create(self.db)
        self.assertEqual(SCHEMA.create(self.db), [])

    def test_create_missing_objects_only(self):
        self.db.create_table(
            "department", [str(c) for c in SCHEMA["department"].columns]
        )

        created = SCHEMA.create(self.db)

        self.assertEqual(len(created), 10)
        self.assertNotIn("Table department", created)

    def test_views_are_empty_on_fresh_database(self):
        SCHEMA.create(self.db)

        self.assertEqual(self.db.select("vw_placement_details"), [])
        self.assertEqual(self.db.select("vw_dept_placement_counts"), [])
        self.assertEqual(self.db.select("vw_student_eligibility"), [])

    def test_schema_lookup(self):
        self.assertEqual(
            SCHEMA.table_names,
            ["department", "industry", "company", "student", "placement"],
        )
        self.assertIn("student", SCHEMA)
        self.assertNotIn("applicant", SCHEMA)

        with self.assertRaises(TableDoesNotExistError):
            SCHEMA["applicant"]

    def test_table_lookup(self):
        student = SCHEMA["student"]
        self.assertEqual(
            student.column_names,
            [
                "id",
                "name",
                "email",
                "phone",
                "department_id",
                "cgpa",
                "is_placed",
                "created_at",
                "updated_at",
            ],
        )
        self.assertIn("is_placed", student)
        self.assertEqual(student["cgpa"].definition.type, "DECIMAL")

        with self.assertRaises(ColumnDoesNotExistError):
            student["advisor_id"]

    def test_auto_table_timestamps(self):
        table = AutoTable("log", [columns.text("message")], timestamps=["created_at"])
        self.assertEqual(table.column_names, ["id", "message", "created_at"])

        table = AutoTable("note", [columns.text("body")], timestamps=[])
        self.assertEqual(table.column_names, ["id", "body"])

    def test_custom_schema(self):
        schema = Schema(
            [AutoTable("note", [columns.text("body")])],
            indexes=[Index("note_body", "note", ["body"], unique=True)],
            views=[View("vw_note", "\n    SELECT body FROM note\n    ")],
        )

        self.assertEqual(
            schema.create(self.db),
            ["Table note", "Unique index note_body", "View vw_note"],
        )
        self.assertEqual(schema.views[0].select, "SELECT body FROM note")

        self.db.insert("note", {"body": "hello"})
        self.assertEqual(self.db.select("vw_note"), [{"body": "hello"}])
