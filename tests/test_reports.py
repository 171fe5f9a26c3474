import datetime
import decimal

from placementcell import NotFound, reports

from .common import OfficeTestCase


class PlacementDetailsTests(OfficeTestCase):
    def test_placement_details(self):
        rows = self.office.placement_details()

        self.assertEqual(len(rows), 2)
        self.assertEqual(
            list(rows[0].keys()),
            [
                "placement_id",
                "student_id",
                "student_name",
                "department",
                "company_id",
                "company_name",
                "industry",
                "salary",
                "placed_on",
            ],
        )
        self.assertEqual(rows[0]["placement_id"], self.ids["alice_google"])
        self.assertEqual(rows[0]["student_name"], "Alice")
        self.assertEqual(rows[0]["department"], "Computer Science")
        self.assertEqual(rows[0]["company_name"], "Google")
        self.assertEqual(rows[0]["industry"], "Information Technology")
        self.assertEqual(rows[0]["salary"], decimal.Decimal("1200000.00"))
        self.assertIsInstance(rows[0]["salary"], decimal.Decimal)
        self.assertEqual(rows[0]["placed_on"], datetime.date(2025, 4, 17))

        self.assertEqual(rows[1]["student_name"], "Bob")
        self.assertEqual(rows[1]["department"], "Mechanical Engineering")
        self.assertEqual(rows[1]["company_name"], "Tesla")
        self.assertEqual(rows[1]["industry"], "Automotive")

    def test_placement_details_with_filter(self):
        rows = self.office.placement_details(
            where="salary > :salary", values={"salary": 1000000}
        )
        self.assertEqual([row["student_name"] for row in rows], ["Alice"])

    def test_placement_details_ordering_and_paging(self):
        rows = self.office.placement_details(order_by="salary", descending=False)
        self.assertEqual([row["student_name"] for row in rows], ["Bob", "Alice"])

        rows = self.office.placement_details(limit=1, offset=1)
        self.assertEqual([row["student_name"] for row in rows], ["Bob"])

    def test_placement_details_follow_deletes(self):
        self.office.delete_placement(self.ids["bob_tesla"])
        rows = self.office.placement_details()
        self.assertEqual([row["student_name"] for row in rows], ["Alice"])


class DepartmentPlacementCountsTests(OfficeTestCase):
    def test_department_placement_counts(self):
        self.office.add_department("Philosophy")

        rows = self.office.department_placement_counts()

        self.assertEqual(
            [(row["department_name"], row["placements_count"]) for row in rows],
            [
                ("Computer Science", 1),
                ("Mechanical Engineering", 1),
                ("Philosophy", 0),
            ],
        )

    def test_department_with_unplaced_students(self):
        carol = self.office.add_student(
            "Carol", "carol@example.com", "", self.ids["cs"], cgpa="9.00"
        )
        self.office.add_placement(carol, self.ids["tesla"], 700000, "2025-05-01")
        self.office.add_student("Dave", "dave@example.com", "", self.ids["cs"])

        rows = self.office.department_placement_counts(
            where="department_id = :id", values={"id": self.ids["cs"]}
        )

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["placements_count"], 2)


class StudentEligibilityTests(OfficeTestCase):
    def test_full_matrix(self):
        rows = self.office.student_eligibility()

        self.assertEqual(len(rows), 4)
        matrix = {
            (row["student_name"], row["company_name"]): row["is_eligible"]
            for row in rows
        }
        self.assertEqual(
            matrix,
            {
                ("Alice", "Google"): True,
                ("Alice", "Tesla"): True,
                ("Bob", "Google"): False,
                ("Bob", "Tesla"): False,
            },
        )
        for row in rows:
            self.assertIsInstance(row["is_eligible"], bool)
            self.assertIsInstance(row["cgpa"], decimal.Decimal)
            self.assertIsInstance(row["min_cgpa"], decimal.Decimal)

    def test_filter_by_student_and_company(self):
        rows = self.office.student_eligibility(
            student_id=self.ids["alice"], company_id=self.ids["google"]
        )
        self.assertEqual(len(rows), 1)
        self.assertIs(rows[0]["is_eligible"], True)
        self.assertEqual(rows[0]["cgpa"], decimal.Decimal("9.10"))
        self.assertEqual(rows[0]["min_cgpa"], decimal.Decimal("8.00"))

    def test_filter_by_eligibility(self):
        rows = self.office.student_eligibility(is_eligible=False)
        self.assertEqual({row["student_id"] for row in rows}, {self.ids["bob"]})

        rows = self.office.student_eligibility(
            is_eligible=True, where="company_name = :name", values={"name": "Tesla"}
        )
        self.assertEqual([row["student_name"] for row in rows], ["Alice"])

    def test_matrix_follows_company_cutoff(self):
        self.office.update_company(
            self.ids["tesla"], "Tesla", self.ids["auto"], min_cgpa="7.50"
        )

        rows = self.office.student_eligibility(
            student_id=self.ids["bob"], is_eligible=True
        )
        self.assertEqual([row["company_name"] for row in rows], ["Tesla"])

    def test_new_rows_appear_in_matrix(self):
        self.office.add_company("Acme", self.ids["it"], min_cgpa="5.00")
        self.office.add_student("Carol", "carol@example.com", "", self.ids["cs"])

        self.assertEqual(len(self.office.student_eligibility()), 9)


class EligibleCompaniesTests(OfficeTestCase):
    def test_eligible_student(self):
        rows = self.office.get_eligible_companies_for_student(self.ids["alice"])

        self.assertEqual(
            [row["company_id"] for row in rows], [self.ids["google"], self.ids["tesla"]]
        )
        self.assertEqual(
            list(rows[0].keys()), ["company_id", "company_name", "min_cgpa"]
        )
        self.assertEqual(rows[0]["company_name"], "Google")
        self.assertEqual(rows[0]["min_cgpa"], decimal.Decimal("8.00"))

    def test_ineligible_student(self):
        self.assertEqual(
            self.office.get_eligible_companies_for_student(self.ids["bob"]), []
        )

    def test_cgpa_equal_to_cutoff(self):
        carol = self.office.add_student(
            "Carol", "carol@example.com", "", self.ids["cs"], cgpa="8.00"
        )

        rows = self.office.get_eligible_companies_for_student(carol)

        self.assertEqual(len(rows), 2)
        matrix = self.office.student_eligibility(student_id=carol)
        self.assertTrue(all(row["is_eligible"] for row in matrix))

    def test_agrees_with_matrix(self):
        self.office.add_company("Acme", self.ids["it"], min_cgpa="7.80")
        self.office.add_company("Initech", self.ids["it"], min_cgpa="9.50")

        for student in ["alice", "bob"]:
            student_id = self.ids[student]
            from_matrix = [
                row["company_id"]
                for row in self.office.student_eligibility(
                    student_id=student_id, is_eligible=True
                )
            ]
            direct = [
                row["company_id"]
                for row in reports.eligible_companies_for_student(self.db, student_id)
            ]
            self.assertEqual(direct, from_matrix)

    def test_unknown_student(self):
        with self.assertRaises(NotFound):
            self.office.get_eligible_companies_for_student(999)
