import datetime
import decimal
from typing import Any, Optional, Union

from . import reports, status
from .database import Database, Row, Rows
from .exceptions import NotFound, ValidationError
from .tables import DEFAULT_CGPA, DEFAULT_MIN_CGPA

DecimalLike = Union[decimal.Decimal, int, float, str]
DateLike = Union[datetime.date, str]

# (total digits, digits after the decimal point), as in DECIMAL(3,2) and DECIMAL(12,2).
CGPA_PRECISION = (3, 2)
SALARY_PRECISION = (12, 2)


class PlacementOffice:
    """
    The operations of the placement office on top of a ``Database``.

    Every mutating method runs in its own savepoint: either the whole operation is
    applied, including any update to ``student.is_placed``, or none of it is. Failures
    are raised as subclasses of ``PlacementCellError``:

    - ``UniqueConstraintViolation`` for a duplicate name, email or placement,
    - ``ForeignKeyViolation`` for a reference to a missing row, or for deleting a row
      that is still referenced,
    - ``NotFound`` for an update or delete of an id that does not exist,
    - ``ValidationError`` for a decimal or date that cannot be stored.

    Outside an open transaction, a mutation takes the database's write lock before its
    first read (see ``Database.savepoint``). So an operation that reads and then writes,
    such as ``delete_placement``, cannot fail halfway because another connection is
    writing. If the lock is still held when SQLite's busy timeout expires, the
    operation raises ``sqlite3.OperationalError`` before doing anything.

    Usage::

        with Database("placements.sqlite3") as db:
            office = PlacementOffice(db)
            cs = office.add_department("Computer Science")
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    # Departments

    def add_department(self, name: str) -> int:
        with self.db.savepoint():
            return self.db.insert("department", {"name": name})

    def update_department(self, department_id: int, name: str) -> None:
        self._update("department", department_id, {"name": name})

    def delete_department(self, department_id: int) -> None:
        self._delete("department", department_id)

    def get_department(self, department_id: int) -> Row:
        return self._get("department", department_id)

    # Industries

    def add_industry(self, name: str) -> int:
        with self.db.savepoint():
            return self.db.insert("industry", {"name": name})

    def update_industry(self, industry_id: int, name: str) -> None:
        self._update("industry", industry_id, {"name": name})

    def delete_industry(self, industry_id: int) -> None:
        self._delete("industry", industry_id)

    def get_industry(self, industry_id: int) -> Row:
        return self._get("industry", industry_id)

    # Companies

    def add_company(
        self,
        name: str,
        industry_id: int,
        contact_person: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        min_cgpa: DecimalLike = DEFAULT_MIN_CGPA,
    ) -> int:
        data = self._company_data(
            name, industry_id, contact_person, contact_email, contact_phone, min_cgpa
        )
        with self.db.savepoint():
            return self.db.insert("company", data)

    def update_company(
        self,
        company_id: int,
        name: str,
        industry_id: int,
        contact_person: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        min_cgpa: DecimalLike = DEFAULT_MIN_CGPA,
    ) -> None:
        """
        Replace every field of the company. Omitted contact fields are cleared rather
        than left unchanged.
        """
        data = self._company_data(
            name, industry_id, contact_person, contact_email, contact_phone, min_cgpa
        )
        self._update("company", company_id, data)

    def delete_company(self, company_id: int) -> None:
        self._delete("company", company_id)

    def get_company(self, company_id: int) -> Row:
        return self._get("company", company_id)

    # Students

    def add_student(
        self,
        name: str,
        email: str,
        phone: Optional[str],
        department_id: int,
        cgpa: DecimalLike = DEFAULT_CGPA,
    ) -> int:
        data = self._student_data(name, email, phone, department_id, cgpa)
        with self.db.savepoint():
            return self.db.insert("student", data)

    def update_student(
        self,
        student_id: int,
        name: str,
        email: str,
        phone: Optional[str],
        department_id: int,
        cgpa: DecimalLike = DEFAULT_CGPA,
    ) -> None:
        """
        Replace every client-owned field of the student. ``is_placed`` is derived from
        the student's placements and cannot be set here.
        """
        data = self._student_data(name, email, phone, department_id, cgpa)
        self._update("student", student_id, data)

    def delete_student(self, student_id: int) -> None:
        """
        Delete the student together with all of their placements.
        """
        with self.db.savepoint():
            if self.db.get_by_pk("student", student_id, columns=["id"]) is None:
                raise NotFound("student", student_id)

            self.db.delete(
                "placement",
                where="student_id = :student_id",
                values={"student_id": student_id},
            )
            self.db.delete_by_pk("student", student_id)

    def get_student(self, student_id: int) -> Row:
        return self._get("student", student_id)

    # Placements

    def add_placement(
        self,
        student_id: int,
        company_id: int,
        salary: DecimalLike,
        placed_on: DateLike,
    ) -> int:
        data = {
            "student_id": student_id,
            "company_id": company_id,
            "salary": to_decimal(salary, "salary", SALARY_PRECISION),
            "placed_on": to_date(placed_on, "placed_on"),
        }
        with self.db.savepoint():
            pk = self.db.insert("placement", data)
            status.mark_placed(self.db, student_id)

        return pk

    def update_placement(
        self, placement_id: int, salary: DecimalLike, placed_on: DateLike
    ) -> None:
        """
        Change the salary and date of a placement. The student and company of a
        placement are fixed once it is recorded, so the student's status is unaffected.
        """
        data = {
            "salary": to_decimal(salary, "salary", SALARY_PRECISION),
            "placed_on": to_date(placed_on, "placed_on"),
        }
        self._update("placement", placement_id, data)

    def delete_placement(self, placement_id: int) -> None:
        with self.db.savepoint():
            placement = self.db.get_by_pk(
                "placement", placement_id, columns=["student_id"]
            )
            if placement is None:
                raise NotFound("placement", placement_id)

            self.db.delete_by_pk("placement", placement_id)
            status.refresh_placed(self.db, placement["student_id"])

    def get_placement(self, placement_id: int) -> Row:
        return self._get("placement", placement_id)

    # Reports

    def get_eligible_companies_for_student(self, student_id: int) -> Rows:
        return reports.eligible_companies_for_student(self.db, student_id)

    def placement_details(self, **kwargs) -> Rows:
        return reports.placement_details(self.db, **kwargs)

    def department_placement_counts(self, **kwargs) -> Rows:
        return reports.department_placement_counts(self.db, **kwargs)

    def student_eligibility(self, **kwargs) -> Rows:
        return reports.student_eligibility(self.db, **kwargs)

    def _get(self, table: str, pk: int) -> Row:
        row = self.db.get_by_pk(table, pk)
        if row is None:
            raise NotFound(table, pk)

        return row

    def _update(self, table: str, pk: int, data: Row) -> None:
        with self.db.savepoint():
            if not self.db.update_by_pk(table, pk, data):
                raise NotFound(table, pk)

    def _delete(self, table: str, pk: int) -> None:
        with self.db.savepoint():
            if not self.db.delete_by_pk(table, pk):
                raise NotFound(table, pk)

    def _company_data(
        self,
        name: str,
        industry_id: int,
        contact_person: Optional[str],
        contact_email: Optional[str],
        contact_phone: Optional[str],
        min_cgpa: DecimalLike,
    ) -> Row:
        return {
            "name": name,
            "industry_id": industry_id,
            "contact_person": contact_person or "",
            "contact_email": contact_email or "",
            "contact_phone": contact_phone or "",
            "min_cgpa": to_decimal(min_cgpa, "min_cgpa", CGPA_PRECISION),
        }

    def _student_data(
        self,
        name: str,
        email: str,
        phone: Optional[str],
        department_id: int,
        cgpa: DecimalLike,
    ) -> Row:
        return {
            "name": name,
            "email": email,
            "phone": phone or "",
            "department_id": department_id,
            "cgpa": to_decimal(cgpa, "cgpa", CGPA_PRECISION),
        }


def to_decimal(value: Any, field: str, precision: tuple) -> decimal.Decimal:
    """
    Convert ``value`` to a ``Decimal`` rounded to the column's scale, raising
    ``ValidationError`` if it is not a number or has too many integer digits for the
    column's precision.
    """
    digits, places = precision
    if isinstance(value, float):
        # Go through the shortest repr so that 9.1 becomes Decimal("9.1"), not
        # Decimal("9.0999999999999996447286321199499070644378662109375").
        value = repr(value)

    try:
        d = decimal.Decimal(value)
    except (decimal.InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field}: {value!r} is not a valid decimal number")

    if not d.is_finite():
        raise ValidationError(f"{field}: {value!r} is not a finite number")

    # Checked before and after rounding: 9.999 only overflows DECIMAL(3,2) once it has
    # been rounded to 10.00.
    if d.adjusted() < digits - places:
        d = d.quantize(decimal.Decimal(1).scaleb(-places))

    if d.adjusted() >= digits - places:
        raise ValidationError(
            f"{field}: {value!r} has more than {digits - places} digit(s) before the "
            + "decimal point"
        )

    return d


def to_date(value: DateLike, field: str) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    elif isinstance(value, datetime.date):
        return value

    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field}: {value!r} is not a date in YYYY-MM-DD format")
