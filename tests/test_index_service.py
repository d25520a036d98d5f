"""Tests for IndexService."""

import logging

import pytest

from conftest import InMemoryStore, make_task, utc
from mdboard.errors import BoardError, ErrorKind
from mdboard.models import BoardOptions, CustomField, FieldType, Index, UpdateDatePolicy
from mdboard.services import IndexService


@pytest.fixture
def index() -> Index:
    return Index(
        name="Board",
        columns={"Todo": ["b", "a"], "Doing": [], "Done": []},
        options=BoardOptions(
            started_columns=["Doing"],
            completed_columns=["Done"],
            reviewed_columns=["Done"],
            deployed_columns=["Done"],
            custom_fields=[
                CustomField(name="reviewed", type=FieldType.DATE, update_date=UpdateDatePolicy.ONCE),
                CustomField(
                    name="deployed", type=FieldType.DATE, update_date=UpdateDatePolicy.ALWAYS
                ),
            ],
        ),
    )


@pytest.fixture
def seeded(index: Index) -> InMemoryStore:
    store = InMemoryStore()
    store.save_index(index)
    store.save_task(make_task("Bravo", "b"))
    store.save_task(make_task("alpha", "a"))
    return store


class TestLinkedFields:
    """Tests for update_column_linked_custom_fields."""

    def test_started_set_once(self, seeded, index):
        service = IndexService(seeded)
        task = make_task("t")
        service.update_column_linked_custom_fields(index, task, "Doing", now=utc(2024, 1, 1))
        service.update_column_linked_custom_fields(index, task, "Doing", now=utc(2024, 1, 2))
        assert task.metadata.started == utc(2024, 1, 1)
        assert task.metadata.completed is None

    def test_custom_policies(self, seeded, index):
        service = IndexService(seeded)
        task = make_task("t", reviewed=utc(2023, 6, 1), deployed=utc(2023, 6, 1))
        service.update_column_linked_custom_fields(index, task, "Done", now=utc(2024, 1, 1))
        assert task.metadata.completed == utc(2024, 1, 1)
        assert task.metadata.get("reviewed") == utc(2023, 6, 1)
        assert task.metadata.get("deployed") == utc(2024, 1, 1)

    def test_unlinked_column(self, seeded, index):
        task = make_task("t")
        IndexService(seeded).update_column_linked_custom_fields(index, task, "Todo")
        assert task.metadata.started is None
        assert task.metadata.completed is None


class TestLoadIndex:
    """Tests for load_index."""

    def test_without_config(self, seeded):
        index = IndexService(seeded).load_index()
        assert index.options.started_columns == ["Doing"]

    def test_config_overrides_options(self, seeded):
        seeded.config = {"started_columns": ["Todo"], "default_task_workload": 5}
        index = IndexService(seeded).load_index()
        assert index.options.started_columns == ["Todo"]
        assert index.options.default_task_workload == 5
        assert index.options.completed_columns == ["Done"]

    def test_bad_config(self, seeded):
        seeded.config = {"sprints": "soon"}
        with pytest.raises(BoardError) as exc_info:
            IndexService(seeded).load_index()
        assert exc_info.value.kind == ErrorKind.PARSE
        assert str(exc_info.value).startswith("Unable to parse options")


class TestLoadTrackedTasks:
    """Tests for load_tracked_tasks."""

    def test_board_order(self, seeded, index):
        tasks = IndexService(seeded).load_tracked_tasks(index)
        assert list(tasks) == ["b", "a"]

    def test_skips_broken(self, seeded, index, caplog):
        seeded.broken_tasks.add("b")
        with caplog.at_level(logging.WARNING, logger="mdboard"):
            tasks = IndexService(seeded).load_tracked_tasks(index)
        assert list(tasks) == ["a"]
        assert "Skipping task b" in caplog.text

    def test_one_column(self, seeded, index):
        assert IndexService(seeded).load_tracked_tasks(index, "Doing") == {}


class TestSaveIndex:
    """Tests for save_index."""

    def test_applies_column_sorting(self, seeded, index):
        index.options.column_sorting = {"Todo": ["name"]}
        IndexService(seeded).save_index(index)
        assert seeded.index.columns["Todo"] == ["a", "b"]

    def test_bad_sorting_skipped(self, seeded, index, caplog):
        index.options.column_sorting = {"Todo": "name", "Missing": ["name"]}
        with caplog.at_level(logging.WARNING, logger="mdboard"):
            IndexService(seeded).save_index(index)
        assert seeded.index.columns["Todo"] == ["b", "a"]
        assert "Not sorting column 'Missing'" in caplog.text

    def test_broken_task_skips_column(self, seeded, index):
        """A column with a task that can't be loaded isn't sorted at all."""
        index.options.column_sorting = {"Todo": ["name"]}
        seeded.broken_tasks.add("b")
        IndexService(seeded).save_index(index)
        assert seeded.index.columns["Todo"] == ["b", "a"]

    def test_options_go_to_config(self, seeded, index):
        seeded.config = {}
        IndexService(seeded).save_index(index)
        assert seeded.config["started_columns"] == ["Doing"]
        assert seeded.index_has_options is False

    def test_options_kept_in_index(self, seeded, index):
        IndexService(seeded).save_index(index)
        assert seeded.index_has_options is True
        assert seeded.index.options.started_columns == ["Doing"]

    def test_ignore_options(self, seeded, index):
        seeded.config = {"started_columns": ["Todo"]}
        IndexService(seeded).save_index(index, ignore_options=True)
        assert seeded.config == {"started_columns": ["Todo"]}
        assert seeded.index_has_options is False
