"""
A small data set for trying out the placement office: two departments, two industries,
two companies with the default 8.00 cutoff, and two students, one above and one below
the cutoff, each placed at one company.
"""
import datetime
import decimal
from typing import Dict

from .office import PlacementOffice


def load_sample_data(office: PlacementOffice) -> Dict[str, int]:
    """
    Insert the sample rows and return their primary keys, keyed by a short name
    (``"cs"``, ``"alice"``, ``"alice_google"``, ...). All rows are inserted in one
    savepoint, so on failure (e.g. the data was already loaded) nothing is inserted.
    """
    with office.db.savepoint():
        ids = {}
        ids["cs"] = office.add_department("Computer Science")
        ids["mech"] = office.add_department("Mechanical Engineering")
        ids["it"] = office.add_industry("Information Technology")
        ids["auto"] = office.add_industry("Automotive")

        ids["google"] = office.add_company(
            "Google", ids["it"], "Sundar Pichai", "sundar@google.com", "1234567890"
        )
        ids["tesla"] = office.add_company(
            "Tesla", ids["auto"], "Elon Musk", "elon@tesla.com", "0987654321"
        )

        ids["alice"] = office.add_student(
            "Alice",
            "alice@example.com",
            "9999990000",
            ids["cs"],
            cgpa=decimal.Decimal("9.10"),
        )
        ids["bob"] = office.add_student(
            "Bob",
            "bob@example.com",
            "8888881111",
            ids["mech"],
            cgpa=decimal.Decimal("7.80"),
        )

        ids["alice_google"] = office.add_placement(
            ids["alice"], ids["google"], 1200000, datetime.date(2025, 4, 17)
        )
        ids["bob_tesla"] = office.add_placement(
            ids["bob"], ids["tesla"], 800000, datetime.date(2025, 4, 18)
        )

    return ids
