import pytest

from ixtable.table import Table
from records import make_books


@pytest.fixture
def books():
    return make_books()


@pytest.fixture
def table(books):
    return Table.from_records(books)
