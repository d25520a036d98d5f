"""Tests for task filtering."""

import pytest

from conftest import make_task, utc
from mdboard.errors import BoardError, ErrorKind
from mdboard.models import BoardOptions, CustomField, FieldType, Index, Relation, SubTask
from mdboard.services import FilterService
from mdboard.services.filter_service import date_filter, number_filter, string_filter


@pytest.fixture
def service() -> FilterService:
    return FilterService()


@pytest.fixture
def index() -> Index:
    return Index(
        columns={"Todo": ["fix-login", "write-docs"], "Done": ["ship-it"]},
        options=BoardOptions(
            completed_columns=["Done"],
            custom_fields=[
                CustomField(name="points", type=FieldType.NUMBER),
                CustomField(name="urgent", type=FieldType.BOOLEAN),
                CustomField(name="reviewed", type=FieldType.DATE),
            ],
        ),
    )


@pytest.fixture
def tasks():
    fix_login = make_task(
        "Fix login",
        tags=["Large", "bug"],
        assigned="sam",
        created=utc(2024, 3, 1, 9),
        points=5,
        urgent=True,
    )
    fix_login.sub_tasks = [SubTask(text="reproduce", completed=True)]
    write_docs = make_task(
        "Write docs",
        tags=["docs"],
        created=utc(2024, 3, 2, 23, 30),
        points=1,
        urgent=False,
        reviewed="2024-03-05",
    )
    write_docs.relations = [Relation(task="ship-it", type="blocks")]
    ship_it = make_task("Ship it", created=utc(2024, 3, 10))
    return [fix_login, write_docs, ship_it]


class TestStringFilter:
    """Tests for string_filter."""

    def test_substring(self):
        assert string_filter("log", "fix login") is True
        assert string_filter("a", "xbz") is False

    def test_any_of_list(self):
        assert string_filter(["a", "b"], "xbz") is True
        assert string_filter(["a", "c"], "xbz") is False

    def test_case_sensitive(self):
        assert string_filter("Fix", "fix login") is False


class TestDateFilter:
    """Tests for date_filter."""

    def test_single_date_matches_same_day(self):
        """A single date matches any time that day, not just midnight."""
        assert date_filter("2024-03-02", utc(2024, 3, 2, 23, 30)) is True
        assert date_filter("2024-03-02", utc(2024, 3, 3, 0, 0)) is False

    def test_datetimes_on_same_day(self):
        assert date_filter(utc(2024, 5, 1, 23), utc(2024, 5, 1, 1)) is True
        assert date_filter([utc(2024, 5, 1, 23)], utc(2024, 5, 2, 1)) is False

    def test_range_inclusive(self):
        dates = ["2024-03-01", "2024-03-10"]
        assert date_filter(dates, utc(2024, 3, 1)) is True
        assert date_filter(dates, utc(2024, 3, 10)) is True
        assert date_filter(dates, utc(2024, 3, 10, 0, 1)) is False

    def test_range_order_irrelevant(self):
        assert date_filter(["2024-03-10", "2024-03-01"], utc(2024, 3, 5)) is True

    def test_missing_value(self):
        assert date_filter("2024-03-02", None) is False

    def test_bad_filter_raises(self):
        with pytest.raises(BoardError) as exc_info:
            date_filter("next tuesday", utc(2024, 3, 2))
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT


class TestNumberFilter:
    """Tests for number_filter."""

    def test_single_value_is_equality(self):
        assert number_filter(3, 3) is True
        assert number_filter([3], 4) is False

    def test_range(self):
        assert number_filter([3, 3], 3) is True
        assert number_filter([1, 2], 3) is False
        assert number_filter([5, 1], 2.5) is True

    def test_strings_converted(self):
        assert number_filter("2", 2) is True

    def test_non_numeric_fails(self):
        assert number_filter("lots", 2) is False
        assert number_filter(2, "two") is False

    def test_empty_list_matches_nothing(self):
        assert number_filter([], 3) is False


class TestFilterService:
    """Tests for FilterService.filter_tasks."""

    def test_empty_filters_return_all(self, service, index, tasks):
        assert list(service.filter_tasks(index, tasks, {})) == [
            "fix-login",
            "write-docs",
            "ship-it",
        ]
        assert len(service.filter_tasks(index, tasks, None)) == 3

    def test_keys_are_anded(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"name": "i", "tags": "bug"})
        assert list(result) == ["fix-login"]

    def test_list_value_matches_any(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"tags": ["bug", "docs"]})
        assert list(result) == ["fix-login", "write-docs"]

    def test_column_field(self, service, index, tasks):
        assert list(service.filter_tasks(index, tasks, {"column": "Done"})) == ["ship-it"]

    def test_unknown_key_ignored(self, service, index, tasks):
        """A key that names no field doesn't exclude anything."""
        result = service.filter_tasks(index, tasks, {"colour": "red"})
        assert len(result) == 3

    def test_missing_value_fails(self, service, index, tasks):
        """A task without a value for the field doesn't match."""
        result = service.filter_tasks(index, tasks, {"reviewed": "2024-03-05"})
        assert list(result) == ["write-docs"]

    def test_assigned_blank_when_missing(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"assigned": "sam"})
        assert list(result) == ["fix-login"]

    def test_number_custom_field(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"points": [2, 10]})
        assert list(result) == ["fix-login"]

    def test_workload_field(self, service, index, tasks):
        """Workload is derived from tags, so it can be filtered without being stored."""
        result = service.filter_tasks(index, tasks, {"workload": 5})
        assert list(result) == ["fix-login"]

    def test_empty_number_list(self, service, index, tasks):
        assert service.filter_tasks(index, tasks, {"workload": []}) == {}

    def test_progress_of_completed_column(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"progress": 1})
        assert list(result) == ["ship-it"]

    def test_boolean_field(self, service, index, tasks):
        assert list(service.filter_tasks(index, tasks, {"urgent": True})) == ["fix-login"]
        assert list(service.filter_tasks(index, tasks, {"urgent": "false"})) == ["write-docs"]
        assert list(service.filter_tasks(index, tasks, {"urgent": "yes"})) == ["fix-login"]

    def test_date_field(self, service, index, tasks):
        result = service.filter_tasks(index, tasks, {"created": "2024-03-02"})
        assert list(result) == ["write-docs"]

    def test_count_field_aliases(self, service, index, tasks):
        """Count fields can be named in kebab or camel case."""
        assert list(service.filter_tasks(index, tasks, {"count-sub-tasks": 1})) == ["fix-login"]
        assert list(service.filter_tasks(index, tasks, {"countRelations": 1})) == ["write-docs"]

    def test_list_fields_match_lines(self, service, index, tasks):
        assert list(service.filter_tasks(index, tasks, {"sub-task": "[x] repro"})) == [
            "fix-login"
        ]
        assert list(service.filter_tasks(index, tasks, {"relation": "blocks"})) == [
            "write-docs"
        ]

    def test_accepts_mapping(self, service, index, tasks):
        task_map = {task.id: task for task in tasks}
        result = service.filter_tasks(index, task_map, {"name": "Ship"})
        assert list(result) == ["ship-it"]
