from __future__ import annotations

from argparse import Namespace
from pathlib import Path

import pytest

from issuedigest import runtime
from issuedigest.config import DigestConfig


def test_prepare_config_requires_config_attribute() -> None:
    with pytest.raises(AttributeError):
        runtime.prepare_config(Namespace())


def test_prepare_config_uses_defaults_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    cfg = runtime.prepare_config(Namespace(config=None, repo="acme/widgets"))
    assert cfg.github_repo == "acme/widgets"
    assert cfg.source_file is None


def test_prepare_config_picks_up_default_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "issuedigest.config.yaml").write_text("github:\n  repo: cfg/repo\n")
    cfg = runtime.prepare_config(Namespace(config=None, repo=None))
    assert cfg.github_repo == "cfg/repo"


def test_prepare_config_explicit_path_uses_loader() -> None:
    seen: list[str] = []

    def loader(path: str) -> DigestConfig:
        seen.append(path)
        return DigestConfig(github_repo="cfg/repo")

    cfg = runtime.prepare_config(Namespace(config="custom.yaml", repo="cli/repo"), loader=loader)
    assert seen == ["custom.yaml"]
    assert cfg.github_repo == "cli/repo"


def test_execute_command_success(capsys: pytest.CaptureFixture[str]) -> None:
    from issuedigest.logging import configure_logging

    configure_logging(json_logging=True, level="INFO")
    assert runtime.execute_command(lambda: 0, "plan") == 0
    assert runtime.execute_command(lambda: None, "plan") == 0
    assert '"operation": "command_plan"' in capsys.readouterr().err


def test_execute_command_propagates_exceptions() -> None:
    def boom() -> int:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        runtime.execute_command(boom, "plan")
