"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest

from mdboard.__main__ import main
from mdboard.cli.commands import parse_filters
from mdboard.cli.output import to_json
from mdboard.errors import BoardError
from mdboard.models import Task
from mdboard.repositories import FilesystemStore
from mdboard.services import TaskService


def run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project with a board holding two tasks."""
    assert run(["--project-root", str(tmp_path), "init", "--name", "CLI board"]) == 0
    service = TaskService(FilesystemStore(tmp_path / ".mdboard"))
    service.create_task(Task(name="Write tests"), "Todo")
    service.create_task(Task(name="Ship"), "Done")
    return tmp_path


class TestParseFilters:
    """Tests for parse_filters."""

    def test_pairs(self):
        assert parse_filters(["name=Ship", "column=Done"]) == {"name": "Ship", "column": "Done"}

    def test_repeated_field_becomes_list(self):
        assert parse_filters(["tags=a", "tags=b", "tags=c"]) == {"tags": ["a", "b", "c"]}

    def test_value_may_contain_equals(self):
        assert parse_filters(["description=a=b"]) == {"description": "a=b"}

    def test_invalid(self):
        with pytest.raises(BoardError):
            parse_filters(["nonsense"])


class TestInit:
    """Tests for the init command."""

    def test_creates_board(self, tmp_path: Path, capsys):
        assert run(["--project-root", str(tmp_path), "init", "-c", "A", "-c", "B"]) == 0
        assert (tmp_path / ".mdboard" / "index.md").exists()
        index = FilesystemStore(tmp_path / ".mdboard").load_index()
        assert list(index.columns) == ["A", "B"]
        assert "ready" in capsys.readouterr().err


class TestStatus:
    """Tests for the status command."""

    def test_quiet(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "status", "-q"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["name"] == "CLI board"
        assert data["tasks"] == 2
        assert data["column_tasks"]["Todo"] == 1

    def test_full(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "status"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["total_workload"] == 4
        assert data["task_workloads"]["ship"]["completed"] is True

    def test_untracked(self, project: Path, capsys):
        FilesystemStore(project / ".mdboard").save_task(Task(id="loose", name="Loose"))
        capsys.readouterr()
        assert run(["--project-root", str(project), "status", "-q", "-u"]) == 0
        assert json.loads(capsys.readouterr().out) == ["loose.md"]

    def test_unknown_sprint(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "status", "-s", "2"]) == 0
        # No sprints on the board, so there is nothing to look up
        assert json.loads(capsys.readouterr().out)["sprint"] is None

    def test_bad_date(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "status", "-d", "garbage"]) == 1
        captured = capsys.readouterr()
        assert "Invalid date" in captured.err
        assert captured.out == ""

    def test_not_initialised(self, tmp_path: Path, capsys):
        assert run(["--project-root", str(tmp_path), "status"]) == 1
        assert "Not initialised in this folder" in capsys.readouterr().err


class TestSearch:
    """Tests for the search command."""

    def test_quiet(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "search", "column=Done", "-q"]) == 0
        assert json.loads(capsys.readouterr().out) == ["ship"]

    def test_hydrated(self, project: Path, capsys):
        capsys.readouterr()
        assert run(["--project-root", str(project), "search", "name=Write"]) == 0
        (task,) = json.loads(capsys.readouterr().out)
        assert task["id"] == "write-tests"
        assert task["column"] == "Todo"
        assert task["workload"] == 2

    def test_bad_filter(self, project: Path, capsys):
        assert run(["--project-root", str(project), "search", "oops"]) == 1
        assert "expected field=value" in capsys.readouterr().err


class TestOutput:
    def test_to_json_handles_models_and_dates(self):
        data = json.loads(to_json({"task": Task(id="t", name="T")}))
        assert data["task"]["name"] == "T"
