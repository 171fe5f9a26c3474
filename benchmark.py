"""
Compare the two ways of answering "which companies can this student apply to?": reading
the full student x company eligibility matrix, and running one indexed query per
student.

Usage: python3 benchmark.py [--profile] [STUDENTS] [COMPANIES]
"""
import cProfile
import decimal
import random
import sys
import timeit

from placementcell import SCHEMA, Database, PlacementOffice


def populate(db, n_students, n_companies):
    office = PlacementOffice(db)
    rng = random.Random(0)
    with db.savepoint():
        department = office.add_department("Computer Science")
        industry = office.add_industry("Information Technology")
        for i in range(n_companies):
            min_cgpa = decimal.Decimal(rng.randint(500, 950)) / 100
            office.add_company(f"Company {i}", industry, min_cgpa=min_cgpa)

        for i in range(n_students):
            cgpa = decimal.Decimal(rng.randint(500, 1000)) / 100
            office.add_student(
                f"Student {i}", f"student{i}@example.com", "", department, cgpa=cgpa
            )

    return office


def benchmark_matrix(office):
    eligible = {}
    for row in office.student_eligibility(is_eligible=True):
        eligible.setdefault(row["student_id"], []).append(row["company_id"])
    return eligible


def benchmark_per_student(office):
    eligible = {}
    for student in office.db.select("student", columns=["id"]):
        rows = office.get_eligible_companies_for_student(student["id"])
        eligible[student["id"]] = [row["company_id"] for row in rows]
    return eligible


def benchmark(n_students, n_companies):
    with Database(":memory:", transaction=False) as db:
        SCHEMA.create(db)
        office = populate(db, n_students, n_companies)

        matrix = timeit.timeit(lambda: benchmark_matrix(office), number=1)
        print(f"eligibility matrix: {matrix:0.3f} seconds")

        per_student = timeit.timeit(lambda: benchmark_per_student(office), number=1)
        print(f"per-student query:  {per_student:0.3f} seconds")


def profile(n_students, n_companies):
    with Database(":memory:", transaction=False) as db:
        SCHEMA.create(db)
        office = populate(db, n_students, n_companies)
        cProfile.runctx(
            "benchmark_matrix(office)",
            globals(),
            {"office": office},
            sort="cumulative",
        )


if __name__ == "__main__":
    args = [arg for arg in sys.argv[1:] if arg != "--profile"]
    n_students = int(args[0]) if len(args) > 0 else 2000
    n_companies = int(args[1]) if len(args) > 1 else 200

    if "--profile" in sys.argv:
        profile(n_students, n_companies)
    else:
        benchmark(n_students, n_companies)
