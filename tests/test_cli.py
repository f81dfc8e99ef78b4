from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import yaml

from jobintake.core.cli import build_parser, main
from jobintake.core.models import Job
from jobintake.storage.repository import JobRepository

from fakes import mkjob


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def write_config(tmp_path: Path) -> Path:
    config = {
        "classifier": {"api_key": "test-key"},
        "storage": {"db_path": str(tmp_path / "jobs.db")},
        "logging": {"level": "DEBUG"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


def seed(tmp_path: Path) -> None:
    repository = JobRepository(str(tmp_path / "jobs.db"))
    now = Job.now_iso()
    repository.insert(mkjob("1", "https://acme.example/job/1", submitted_at=now, requires_diploma=True))
    repository.insert(mkjob("2", "https://acme.example/job/2", submitted_at=now, requires_license=True))
    repository.insert(mkjob("3", "https://acme.example/job/3", submitted_at=now))
    repository.close()


def list_ids(tmp_path: Path, capsys: pytest.CaptureFixture[str], *flags: str) -> list[str]:
    config = write_config(tmp_path)
    assert main(["--config", str(config), "--log-dir", str(tmp_path / "logs"), "list", *flags]) == 0
    return sorted(job["id"] for job in json.loads(capsys.readouterr().out))


def test_list_filters_on_diploma_and_license(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    seed(tmp_path)

    assert list_ids(tmp_path, capsys) == ["1", "2", "3"]
    assert list_ids(tmp_path, capsys, "--diploma", "no") == ["2", "3"]
    assert list_ids(tmp_path, capsys, "--diploma", "yes") == ["1"]
    assert list_ids(tmp_path, capsys, "--license", "no", "--diploma", "no") == ["3"]


def test_list_rejects_other_flag_values() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["list", "--diploma", "maybe"])


def test_commands_log_to_the_configured_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    list_ids(tmp_path, capsys)
    assert (tmp_path / "logs" / "jobintake.log").exists()
    assert logging.getLogger().level == logging.DEBUG
