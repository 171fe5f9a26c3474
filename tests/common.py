import datetime
import unittest

from placementcell import SCHEMA, Database, PlacementOffice
from placementcell.sample import load_sample_data

LONG_AGO = datetime.datetime(2000, 1, 1)


class OfficeTestCase(unittest.TestCase):
    """
    A test case with an in-memory database holding the sample data set:

    - departments ``cs`` and ``mech``, industries ``it`` and ``auto``,
    - companies ``google`` (industry ``it``) and ``tesla`` (industry ``auto``), both
      with the default 8.00 cutoff,
    - students ``alice`` (``cs``, 9.10) and ``bob`` (``mech``, 7.80),
    - placements ``alice_google`` and ``bob_tesla``.
    """

    def setUp(self):
        self.db = Database(":memory:", transaction=False)
        SCHEMA.create(self.db)
        self.office = PlacementOffice(self.db)
        self.ids = load_sample_data(self.office)

    def tearDown(self):
        self.db.close()

    def is_placed(self, student):
        return self.office.get_student(self.ids.get(student, student))["is_placed"]

    def backdate(self, table):
        """
        Set every timestamp in ``table`` to ``LONG_AGO`` so that a later write is
        visible regardless of the clock's resolution.
        """
        columns = [
            column
            for column in ["created_at", "updated_at"]
            if column in self.db.schema[table]
        ]
        assignments = ", ".join(f"{column} = :t" for column in columns)
        self.db.sql(f"UPDATE {table} SET {assignments}", {"t": LONG_AGO.isoformat(" ")})
