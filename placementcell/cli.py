"""
The implementation of the `placementcell` command-line tool.

A subcommand called `xyz` is implemented in a function called `main_xyz`, with a
corresponding wrapper function called `main_xyz_wrapper` that is used by Click, the
argument parsing framework. The wrapper only adapts Click's arguments; all of the work
happens in `main_xyz`.
"""
import collections
import contextlib
import shutil
import sqlite3
import sys

import click
import sqliteparser
from tabulate import tabulate

from . import SCHEMA, Database, PlacementCellError, PlacementOffice, status
from .sample import load_sample_data

# Help strings used in multiple places.
HELP_COLUMNS = "Only display these columns in the results."
HELP_DEBUG = "Print every SQL statement before it is executed."
HELP_DESC = (
    "When combined with --order-by, order the results in descending rather than "
    + "ascending order."
)
HELP_HIDE = "Hide these columns in the results."
HELP_LIMIT = "Limit the number of rows returned from the database."
HELP_NO_CONFIRM = "Do not prompt for confirmation."
HELP_OFFSET = "Offset a query with --limit."
HELP_ORDER_BY = "Order the results by this column."
HELP_WHERE = "Restrict the results with a SQL condition, e.g. \"salary > 500000\"."

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    envvar="PLACEMENTCELL_DEBUG",
    help=HELP_DEBUG,
)
@click.pass_context
def cli(ctx, debug):
    ctx.obj = {"debug": debug}


@contextlib.contextmanager
def open_database(db_path, *, readonly=False):
    """
    Open the database in autocommit mode, so that each operation commits as soon as it
    succeeds, and turn library errors into an error message and exit status 1.
    """
    try:
        with Database(
            db_path, transaction=False, readonly=readonly, debugger=debug_enabled()
        ) as db:
            yield db
    except (PlacementCellError, sqlite3.OperationalError) as e:
        report_error_and_exit(str(e))


@contextlib.contextmanager
def open_office(db_path, *, readonly=False):
    with open_database(db_path, readonly=readonly) as db:
        yield PlacementOffice(db)


def debug_enabled():
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return False

    obj = ctx.find_object(dict)
    return bool(obj and obj.get("debug"))


@cli.command(name="init")
@click.argument("db_path")
def main_init_wrapper(*args, **kwargs):
    """
    Create the placement office's tables, indexes and views.
    """
    main_init(*args, **kwargs)


def main_init(db_path):
    with open_database(db_path) as db:
        created = SCHEMA.create(db)
        if created:
            for description in created:
                print(f"- {description}")
            print()
            print(f"Created {len(created)} object(s).")
        else:
            print("Nothing to do: database already matches schema.")


@cli.command(name="seed")
@click.argument("db_path")
def main_seed_wrapper(*args, **kwargs):
    """
    Load a small sample data set into an initialized database.
    """
    main_seed(*args, **kwargs)


def main_seed(db_path):
    with open_office(db_path) as office:
        ids = load_sample_data(office)
        print(f"Sample data loaded ({len(ids)} row(s)).")


@cli.command(name="schema")
@click.argument("db_path")
@click.argument("name", required=False, default=None)
def main_schema_wrapper(*args, **kwargs):
    """
    List the tables and views in the database, or show the definition of one.
    """
    main_schema(*args, **kwargs)


def main_schema(db_path, name=None):
    with open_database(db_path, readonly=True) as db:
        if name is not None:
            row = db.get(
                "sqlite_master",
                where="type IN ('table', 'view') AND name = :name",
                values={"name": name},
            )
            if row is None:
                report_error_and_exit(f"no table or view named {name!r}")

            if row["type"] == "view":
                print(row["sql"])
                return

            try:
                # Use sqliteparser to parse and pretty-print the table schema.
                print(sqliteparser.parse(row["sql"])[0])
            except sqliteparser.SQLiteParserError:
                # If sqliteparser can't parse the table schema, just directly print
                # what SQLite returned to us.
                print(row["sql"])
        else:
            rows = db.select(
                "sqlite_master",
                columns=["type", "name"],
                where="type IN ('table', 'view') AND name NOT LIKE 'sqlite_%'",
                order_by=("type", "name"),
            )
            if rows:
                prettyprint_rows(rows)
            else:
                print("No tables found. Run `placementcell init` first.")


def main_get(db_path, table, pk):
    with open_database(db_path, readonly=True) as db:
        row = db.get_by_pk(table, pk, get_related=True)
        if row is None:
            report_error_and_exit(f"row {pk} not found in table {table!r}")

        for key, value in row.items():
            if isinstance(value, collections.OrderedDict):
                row[key] = get_column_as_string(value)

        prettyprint_row(row)


def main_delete(db_path, table, pk, *, no_confirm=False):
    with open_office(db_path) as office:
        row = office.db.get_by_pk(table, pk)
        if row is None:
            report_error_and_exit(f"row {pk} not found in table {table!r}")

        prettyprint_row(row)
        if not no_confirm:
            print()
            if not click.confirm("Are you sure you wish to delete this record?"):
                print()
                print("Operation aborted.")
                sys.exit(1)

        getattr(office, f"delete_{table}")(pk)
        print()
        print(f"Row {pk} deleted from table {table!r}.")


def add_reference_data_commands(group, table):
    """
    Attach `add`, `update`, `delete` and `get` commands for a table whose only field is
    a unique name, i.e. `department` and `industry`.
    """

    @group.command(name="add")
    @click.argument("db_path")
    @click.argument("name")
    def main_add(db_path, name):
        with open_office(db_path) as office:
            pk = getattr(office, f"add_{table}")(name)
            print(f"Row {pk} created in table {table!r}.")

    @group.command(name="update")
    @click.argument("db_path")
    @click.argument("pk", type=int)
    @click.argument("name")
    def main_update(db_path, pk, name):
        with open_office(db_path) as office:
            getattr(office, f"update_{table}")(pk, name)
            print(f"Row {pk} updated in table {table!r}.")

    add_get_and_delete_commands(group, table)


def add_get_and_delete_commands(group, table):
    @group.command(name="get")
    @click.argument("db_path")
    @click.argument("pk", type=int)
    def main_get_wrapper(db_path, pk):
        main_get(db_path, table, pk)

    @group.command(name="delete")
    @click.argument("db_path")
    @click.argument("pk", type=int)
    @click.option("--no-confirm", is_flag=True, default=False, help=HELP_NO_CONFIRM)
    def main_delete_wrapper(db_path, pk, no_confirm):
        main_delete(db_path, table, pk, no_confirm=no_confirm)


@cli.group(name="department")
def department_group():
    """
    Add, update, delete and show departments.
    """


@cli.group(name="industry")
def industry_group():
    """
    Add, update, delete and show industries.
    """


add_reference_data_commands(department_group, "department")
add_reference_data_commands(industry_group, "industry")


@cli.group(name="company")
def company_group():
    """
    Add, update, delete and show companies.
    """


def company_options(f):
    f = click.option("--contact-person", default="")(f)
    f = click.option("--contact-email", default="")(f)
    f = click.option("--contact-phone", default="")(f)
    f = click.option(
        "--min-cgpa", default="8.00", show_default=True, help="Minimum CGPA cutoff."
    )(f)
    return f


@company_group.command(name="add")
@click.argument("db_path")
@click.argument("name")
@click.argument("industry_id", type=int)
@company_options
def main_company_add_wrapper(*args, **kwargs):
    """
    Add a company.
    """
    main_company_add(*args, **kwargs)


def main_company_add(db_path, name, industry_id, **fields):
    with open_office(db_path) as office:
        pk = office.add_company(name, industry_id, **fields)
        print(f"Row {pk} created in table 'company'.")


@company_group.command(name="update")
@click.argument("db_path")
@click.argument("pk", type=int)
@click.argument("name")
@click.argument("industry_id", type=int)
@company_options
def main_company_update_wrapper(*args, **kwargs):
    """
    Replace every field of a company. Contact fields that are not passed are cleared.
    """
    main_company_update(*args, **kwargs)


def main_company_update(db_path, pk, name, industry_id, **fields):
    with open_office(db_path) as office:
        office.update_company(pk, name, industry_id, **fields)
        print(f"Row {pk} updated in table 'company'.")


add_get_and_delete_commands(company_group, "company")


@cli.group(name="student")
def student_group():
    """
    Add, update, delete and show students.
    """


def student_options(f):
    f = click.option("--phone", default="")(f)
    f = click.option("--cgpa", default="0.00", show_default=True)(f)
    return f


@student_group.command(name="add")
@click.argument("db_path")
@click.argument("name")
@click.argument("email")
@click.argument("department_id", type=int)
@student_options
def main_student_add_wrapper(*args, **kwargs):
    """
    Add a student.
    """
    main_student_add(*args, **kwargs)


def main_student_add(db_path, name, email, department_id, *, phone="", cgpa="0.00"):
    with open_office(db_path) as office:
        pk = office.add_student(name, email, phone, department_id, cgpa=cgpa)
        print(f"Row {pk} created in table 'student'.")


@student_group.command(name="update")
@click.argument("db_path")
@click.argument("pk", type=int)
@click.argument("name")
@click.argument("email")
@click.argument("department_id", type=int)
@student_options
def main_student_update_wrapper(*args, **kwargs):
    """
    Replace every field of a student except the derived `is_placed` flag.
    """
    main_student_update(*args, **kwargs)


def main_student_update(
    db_path, pk, name, email, department_id, *, phone="", cgpa="0.00"
):
    with open_office(db_path) as office:
        office.update_student(pk, name, email, phone, department_id, cgpa=cgpa)
        print(f"Row {pk} updated in table 'student'.")


add_get_and_delete_commands(student_group, "student")


@cli.group(name="placement")
def placement_group():
    """
    Record, update, delete and show placements.
    """


@placement_group.command(name="add")
@click.argument("db_path")
@click.argument("student_id", type=int)
@click.argument("company_id", type=int)
@click.argument("salary")
@click.argument("placed_on", type=DATE_TYPE)
def main_placement_add_wrapper(*args, **kwargs):
    """
    Record that a student was placed at a company. PLACED_ON is a date in YYYY-MM-DD
    format.
    """
    main_placement_add(*args, **kwargs)


def main_placement_add(db_path, student_id, company_id, salary, placed_on):
    with open_office(db_path) as office:
        pk = office.add_placement(student_id, company_id, salary, placed_on)
        print(f"Row {pk} created in table 'placement'.")


@placement_group.command(name="update")
@click.argument("db_path")
@click.argument("pk", type=int)
@click.argument("salary")
@click.argument("placed_on", type=DATE_TYPE)
def main_placement_update_wrapper(*args, **kwargs):
    """
    Change the salary and date of a placement.
    """
    main_placement_update(*args, **kwargs)


def main_placement_update(db_path, pk, salary, placed_on):
    with open_office(db_path) as office:
        office.update_placement(pk, salary, placed_on)
        print(f"Row {pk} updated in table 'placement'.")


add_get_and_delete_commands(placement_group, "placement")


@cli.group(name="report")
def report_group():
    """
    Show one of the reports: placements, departments or eligibility.
    """


def report_options(f):
    f = click.option("-w", "--where", default="", help=HELP_WHERE)(f)
    f = click.option("--order-by", default=None, help=HELP_ORDER_BY)(f)
    f = click.option("--desc", is_flag=True, default=False, help=HELP_DESC)(f)
    f = click.option("--limit", type=int, default=None, help=HELP_LIMIT)(f)
    f = click.option("--offset", type=int, default=None, help=HELP_OFFSET)(f)
    f = click.option("--columns", multiple=True, default=[], help=HELP_COLUMNS)(f)
    f = click.option("--hide", multiple=True, default=[], help=HELP_HIDE)(f)
    return f


@report_group.command(name="placements")
@click.argument("db_path")
@report_options
def main_report_placements_wrapper(*args, **kwargs):
    """
    Every placement with student, department, company and industry names.
    """
    main_report("placement_details", *args, **kwargs)


@report_group.command(name="departments")
@click.argument("db_path")
@report_options
def main_report_departments_wrapper(*args, **kwargs):
    """
    The number of placements in each department.
    """
    main_report("department_placement_counts", *args, **kwargs)


@report_group.command(name="eligibility")
@click.argument("db_path")
@click.option("--student", "student_id", type=int, default=None)
@click.option("--company", "company_id", type=int, default=None)
@click.option("--eligible/--not-eligible", "is_eligible", default=None)
@report_options
def main_report_eligibility_wrapper(*args, **kwargs):
    """
    Every student and company pair, with whether the student meets the company's CGPA
    cutoff.
    """
    main_report("student_eligibility", *args, **kwargs)


def main_report(
    report,
    db_path,
    *,
    where="",
    order_by=None,
    desc=False,
    limit=None,
    offset=None,
    columns=[],
    hide=[],
    **filters,
):
    with open_office(db_path, readonly=True) as office:
        kwargs = dict(filters, where=where, limit=limit, offset=offset)
        if order_by:
            kwargs["order_by"] = order_by
            kwargs["descending"] = desc

        rows = getattr(office, report)(**kwargs)
        if rows:
            prettyprint_rows(rows, columns=columns, hide=hide)
        else:
            print("No rows found.")


@cli.command(name="eligible")
@click.argument("db_path")
@click.argument("student_id", type=int)
def main_eligible_wrapper(*args, **kwargs):
    """
    List the companies whose CGPA cutoff a student meets.
    """
    main_eligible(*args, **kwargs)


def main_eligible(db_path, student_id):
    with open_office(db_path, readonly=True) as office:
        rows = office.get_eligible_companies_for_student(student_id)
        if rows:
            prettyprint_rows(rows)
        else:
            print(f"Student {student_id} is not eligible for any company.")


@cli.command(name="check")
@click.argument("db_path")
@click.option(
    "--repair",
    is_flag=True,
    default=False,
    help="Recompute the flag of every inconsistent student.",
)
def main_check_wrapper(*args, **kwargs):
    """
    Check that every student's `is_placed` flag matches their placements.
    """
    main_check(*args, **kwargs)


def main_check(db_path, *, repair=False):
    with open_database(db_path, readonly=not repair) as db:
        if repair:
            rows = status.repair(db)
        else:
            rows = status.find_inconsistent(db)

        if not rows:
            print("All students are consistent.")
            return

        prettyprint_rows(rows)
        print()
        if repair:
            print(f"Repaired {len(rows)} student(s).")
        else:
            print("To fix these students, re-run with the --repair flag.")
            sys.exit(1)


def prettyprint_rows(rows, *, columns=[], hide=[]):
    headers = [key for key in rows[0].keys() if should_show_column(key, columns, hide)]
    table_rows = [
        [cell for key, cell in row.items() if should_show_column(key, columns, hide)]
        for row in rows
    ]
    table = tabulate(table_rows, headers=headers, disable_numparse=True)

    width = shutil.get_terminal_size().columns
    placeholder = " ..."
    overflow = False
    for line in table.splitlines():
        if len(line) > width:
            print(line[: width - len(placeholder)] + placeholder)
            overflow = True
        else:
            print(line)

    print()
    print(f"{len(table_rows)} row(s).")
    if overflow:
        print("Some columns truncated due to overflow. Use --columns or --hide.")


def prettyprint_row(row):
    print(tabulate(list(row.items()), disable_numparse=True))


def should_show_column(key, columns, hide):
    if columns:
        return key in columns

    if hide:
        return key not in hide

    return True


def get_column_as_string(column):
    # Show an embedded foreign row as its primary key followed by its name.
    pk = column.get("id")
    name = column.get("name")
    if name:
        return f"{pk} ({name})"
    else:
        return str(pk)


def report_error_and_exit(message):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)
