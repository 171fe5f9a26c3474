"""
Read-only reports over the placement office's views.

Every report is recomputed by SQLite each time it is queried; nothing is cached. Each
function accepts the same ``where``/``values``/``order_by``/``limit`` parameters as
``Database.select`` so that callers can filter with arbitrary predicates, e.g.::

    reports.student_eligibility(db, where="cgpa > :cgpa", values={"cgpa": 9})
"""
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .database import Rows
from .exceptions import NotFound

if TYPE_CHECKING:
    from .database import Database


def placement_details(
    db: "Database",
    *,
    where: str = "",
    values: Dict[str, Any] = {},
    order_by: Optional[str] = "placement_id",
    descending: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Rows:
    """
    One row per placement, with student, department, company and industry names in
    place of their ids.
    """
    return db.select(
        "vw_placement_details",
        where=where,
        values=values,
        order_by=order_by,
        descending=descending,
        limit=limit,
        offset=offset,
    )


def department_placement_counts(
    db: "Database",
    *,
    where: str = "",
    values: Dict[str, Any] = {},
    order_by: Optional[str] = "department_id",
    descending: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Rows:
    """
    The number of placements in each department. Departments without students or
    without placements are reported with a count of zero.
    """
    return db.select(
        "vw_dept_placement_counts",
        where=where,
        values=values,
        order_by=order_by,
        descending=descending,
        limit=limit,
        offset=offset,
    )


def student_eligibility(
    db: "Database",
    *,
    student_id: Optional[int] = None,
    company_id: Optional[int] = None,
    is_eligible: Optional[bool] = None,
    where: str = "",
    values: Dict[str, Any] = {},
    order_by: Optional[str] = "student_id, company_id",
    descending: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Rows:
    """
    Every (student, company) pair with an ``is_eligible`` flag that is true when the
    student's CGPA meets the company's cutoff.

    The full matrix grows with students x companies, so callers with more than a
    handful of rows should narrow it with ``student_id``, ``company_id``,
    ``is_eligible`` or ``where``; the filters are pushed down into the SQL query.
    """
    conditions: List[str] = []
    values = dict(values)
    if where:
        conditions.append(f"({where})")

    if student_id is not None:
        conditions.append("student_id = :student_id")
        values["student_id"] = student_id

    if company_id is not None:
        conditions.append("company_id = :company_id")
        values["company_id"] = company_id

    if is_eligible is not None:
        conditions.append("is_eligible = :is_eligible")
        values["is_eligible"] = is_eligible

    rows = db.select(
        "vw_student_eligibility",
        where=" AND ".join(conditions),
        values=values,
        order_by=order_by,
        descending=descending,
        limit=limit,
        offset=offset,
    )
    # The comparison in the view has no declared type, so SQLite hands back 0 or 1.
    for row in rows:
        row["is_eligible"] = bool(row["is_eligible"])

    return rows


def eligible_companies_for_student(db: "Database", student_id: int) -> Rows:
    """
    The companies whose CGPA cutoff the student meets, ordered by company id. Unlike
    ``student_eligibility``, this never builds the cross product: it is a single range
    scan over ``company.min_cgpa``.
    """
    student = db.get_by_pk("student", student_id, columns=["cgpa"])
    if student is None:
        raise NotFound("student", student_id)

    return db.sql(
        """
        SELECT c.id AS company_id, c.name AS company_name, c.min_cgpa
        FROM company c
        WHERE c.min_cgpa <= (SELECT s.cgpa FROM student s WHERE s.id = :student_id)
        ORDER BY c.id
        """,
        {"student_id": student_id},
    )
