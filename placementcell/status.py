"""
Maintenance of the derived ``student.is_placed`` flag.

A student is placed exactly when at least one ``placement`` row references them. The
functions in this module must be called inside the same savepoint as the placement
write that makes them necessary, so that no reader ever sees a placement row without
the matching flag.
"""
from typing import TYPE_CHECKING

from .database import Rows

if TYPE_CHECKING:
    from .database import Database


def mark_placed(db: "Database", student_id: int) -> None:
    """
    Record that a placement was just inserted for the student. A new placement always
    means the student is placed, so there is nothing to count.
    """
    db.update_by_pk("student", student_id, {"is_placed": True})


def refresh_placed(db: "Database", student_id: int) -> bool:
    """
    Recompute the student's flag from the placements that remain, e.g. after one of
    several placements was deleted, and return the new value.
    """
    count = db.count(
        "placement", where="student_id = :student_id", values={"student_id": student_id}
    )
    is_placed = count > 0
    db.update_by_pk("student", student_id, {"is_placed": is_placed})
    return is_placed


def find_inconsistent(db: "Database") -> Rows:
    """
    Return the students whose ``is_placed`` flag disagrees with the placement table,
    along with the number of placements each one actually has. An empty list means the
    flag is consistent everywhere.
    """
    return db.sql(
        """
        SELECT
            s.id AS student_id,
            s.name AS student_name,
            s.is_placed,
            COUNT(p.id) AS placements_count
        FROM student s
        LEFT JOIN placement p ON p.student_id = s.id
        GROUP BY s.id
        HAVING s.is_placed != (COUNT(p.id) > 0)
        ORDER BY s.id
        """
    )


def repair(db: "Database") -> Rows:
    """
    Recompute the flag of every student returned by ``find_inconsistent`` and return
    those rows. Normal operation never needs this; it exists for databases written to
    by other tools that bypass ``PlacementOffice``.
    """
    with db.savepoint():
        rows = find_inconsistent(db)
        for row in rows:
            refresh_placed(db, row["student_id"])

    return rows
