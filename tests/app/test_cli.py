from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from uuid import uuid4

import pytest

from plantkeep.domain.backup import ImportSummary, StructuralError
from plantkeep.domain.model import ImportMode
from plantkeep.ui import cli as cli_module


def test_import_command_prints_summary(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}
    user_id = uuid4()

    def fake_import(path: Path, **kwargs: object) -> ImportSummary:
        captured["path"] = path
        captured.update(kwargs)
        return ImportSummary(mode=ImportMode.REPLACE)

    monkeypatch.setattr(cli_module, "import_backup_file", fake_import)

    cli_module.main(["import", "backup.zip", "--user-id", str(user_id), "--mode", "replace"])

    assert captured == {
        "path": Path("backup.zip"),
        "user_id": user_id,
        "mode": ImportMode.REPLACE,
    }
    payload = json.loads(capsys.readouterr().out)
    assert payload["mode"] == "replace"
    assert payload["plantsCreated"] == 0


def test_import_defaults_to_merge(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_import(path: Path, **kwargs: object) -> ImportSummary:
        _ = path
        captured.update(kwargs)
        return ImportSummary(mode=ImportMode.MERGE)

    monkeypatch.setattr(cli_module, "import_backup_file", fake_import)

    cli_module.main(["import", "backup.zip", "--user-id", str(uuid4())])

    assert captured["mode"] is ImportMode.MERGE


def test_invalid_user_id_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "import_backup_file", lambda *_, **__: None)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", "backup.zip", "--user-id", "not-a-uuid"])

    assert excinfo.value.code == 2


def test_unknown_mode_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", "backup.zip", "--user-id", str(uuid4()), "--mode", "upsert"])

    assert excinfo.value.code == 2



def test_invalid_log_level_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLANTKEEP_LOG_LEVEL", "chatty")
    monkeypatch.setattr(cli_module.logging, "basicConfig", lambda **_: None)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["export", "out.zip", "--user-id", str(uuid4())])

    assert excinfo.value.code == 2


def test_structural_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_import(*_: object, **__: object) -> ImportSummary:
        raise StructuralError("backup.json not found in backup archive")

    monkeypatch.setattr(cli_module, "import_backup_file", fake_import)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", "backup.zip", "--user-id", str(uuid4())])

    assert excinfo.value.code == 1


def test_user_create_prints_new_id(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    user_id = uuid4()
    captured: dict[str, object] = {}

    def fake_create_user(**kwargs: object) -> SimpleNamespace:
        captured.update(kwargs)
        return SimpleNamespace(id=user_id)

    monkeypatch.setattr(cli_module, "create_user", fake_create_user)

    cli_module.main(["user", "create", "--username", "alice"])

    assert captured == {"username": "alice"}
    assert capsys.readouterr().out.strip() == str(user_id)


def test_export_command_passes_output_path(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    user_id = uuid4()

    def fake_export(path: Path, **kwargs: object) -> Path:
        captured["path"] = path
        captured.update(kwargs)
        return path

    monkeypatch.setattr(cli_module, "export_backup_file", fake_export)

    cli_module.main(["export", "out/backup.zip", "--user-id", str(user_id)])

    assert captured == {"path": Path("out/backup.zip"), "user_id": user_id}
