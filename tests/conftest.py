"""
Shared pytest fixtures for recpipe tests.

Sample records use the employee layout:

    cols  0-7   last name
    cols  8-17  first name
    cols 18-27  department
    cols 28-35  employee id
    cols 36-43  salary
"""

import pytest

from recpipe.record import Record
from recpipe.stages import MemoryFiles


def employee(last: str, first: str, dept: str, emp_id: str, salary: str) -> Record:
    return Record(f"{last:<8}{first:<10}{dept:<10}{emp_id:<8}{salary:<8}")


EMPLOYEES = [
    employee("SMITH", "JOHN", "SALES", "E0001", "00050000"),
    employee("JONES", "MARY", "ENGINEER", "E0002", "00075000"),
    employee("DOE", "JANE", "SALES", "E0003", "00060000"),
    employee("WILSON", "BOB", "MARKETING", "E0004", "00055000"),
    employee("BROWN", "ALICE", "ENGINEER", "E0005", "00080000"),
]


@pytest.fixture(autouse=True)
def no_log_files(monkeypatch):
    """Keep tests from writing log files into the working directory."""
    monkeypatch.setenv("RECPIPE_DEBUG_LOG", "")


@pytest.fixture
def employees():
    return list(EMPLOYEES)


@pytest.fixture
def employees_text():
    return "\n".join(r.rstrip() for r in EMPLOYEES) + "\n"


@pytest.fixture
def memory_files(employees):
    return MemoryFiles({"employees.txt": employees})
