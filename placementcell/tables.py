"""
The placement office's schema: five tables, a unique index enforcing one placement per
student and company, and three reporting views.
"""
import decimal

from sqliteparser.ast import OnDelete

from . import columns
from .schema import AutoTable, Index, Schema, View

DEFAULT_MIN_CGPA = decimal.Decimal("8.00")
DEFAULT_CGPA = decimal.Decimal("0.00")

DEPARTMENT = AutoTable(
    "department",
    [
        columns.text("name", unique=True),
    ],
)

INDUSTRY = AutoTable(
    "industry",
    [
        columns.text("name", unique=True),
    ],
)

COMPANY = AutoTable(
    "company",
    [
        columns.text("name", unique=True),
        columns.foreign_key("industry_id", "industry"),
        columns.text("contact_person", required=False),
        columns.text("contact_email", required=False),
        columns.text("contact_phone", required=False),
        columns.decimal("min_cgpa", default=DEFAULT_MIN_CGPA, min=0),
    ],
)

STUDENT = AutoTable(
    "student",
    [
        columns.text("name"),
        columns.text("email", unique=True),
        columns.text("phone", required=False),
        columns.foreign_key("department_id", "department"),
        columns.decimal("cgpa", default=DEFAULT_CGPA, min=0),
        columns.boolean("is_placed", default=False),
    ],
)

PLACEMENT = AutoTable(
    "placement",
    [
        columns.foreign_key("student_id", "student", on_delete=OnDelete.CASCADE),
        columns.foreign_key("company_id", "company"),
        columns.decimal("salary", min=0),
        columns.date("placed_on"),
    ],
    timestamps=("created_at",),
)

PLACEMENT_STUDENT_COMPANY_INDEX = Index(
    "placement_student_company",
    "placement",
    ["student_id", "company_id"],
    unique=True,
)

# Foreign keys are not indexed automatically by SQLite.
PLACEMENT_COMPANY_INDEX = Index("placement_company", "placement", ["company_id"])
COMPANY_MIN_CGPA_INDEX = Index("company_min_cgpa", "company", ["min_cgpa"])

PLACEMENT_DETAILS_VIEW = View(
    "vw_placement_details",
    """
    SELECT
        p.id AS placement_id,
        s.id AS student_id,
        s.name AS student_name,
        d.name AS department,
        c.id AS company_id,
        c.name AS company_name,
        i.name AS industry,
        p.salary,
        p.placed_on
    FROM placement p
    JOIN student s ON p.student_id = s.id
    JOIN department d ON s.department_id = d.id
    JOIN company c ON p.company_id = c.id
    JOIN industry i ON c.industry_id = i.id
    """,
)

DEPARTMENT_PLACEMENT_COUNTS_VIEW = View(
    "vw_dept_placement_counts",
    """
    SELECT
        d.id AS department_id,
        d.name AS department_name,
        COUNT(p.id) AS placements_count
    FROM department d
    LEFT JOIN student s ON s.department_id = d.id
    LEFT JOIN placement p ON p.student_id = s.id
    GROUP BY d.id, d.name
    """,
)

STUDENT_ELIGIBILITY_VIEW = View(
    "vw_student_eligibility",
    """
    SELECT
        s.id AS student_id,
        s.name AS student_name,
        s.cgpa,
        c.id AS company_id,
        c.name AS company_name,
        c.min_cgpa,
        (s.cgpa >= c.min_cgpa) AS is_eligible
    FROM student s
    CROSS JOIN company c
    """,
)

SCHEMA = Schema(
    [DEPARTMENT, INDUSTRY, COMPANY, STUDENT, PLACEMENT],
    indexes=[
        PLACEMENT_STUDENT_COMPANY_INDEX,
        PLACEMENT_COMPANY_INDEX,
        COMPANY_MIN_CGPA_INDEX,
    ],
    views=[
        PLACEMENT_DETAILS_VIEW,
        DEPARTMENT_PLACEMENT_COUNTS_VIEW,
        STUDENT_ELIGIBILITY_VIEW,
    ],
)
