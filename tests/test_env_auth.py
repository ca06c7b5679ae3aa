from pathlib import Path

import pytest

from issuedigest.env_auth import (
    TOKEN_VARIABLES,
    EnvAuthConfig,
    EnvironmentAuthManager,
    create_env_auth_manager,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (*TOKEN_VARIABLES, "CI", "GITHUB_ACTIONS", "CODESPACES", "VSCODE_IPC_HOOK"):
        # setenv first so teardown also removes values a .env file loaded
        monkeypatch.setenv(var, "placeholder")
        monkeypatch.delenv(var)


def test_env_auth_config_defaults():
    config = EnvAuthConfig()
    assert config.load_dotenv is True
    assert config.dotenv_path is None
    assert config.token_variables[0] == "GITHUB_TOKEN"


def test_no_token():
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))
    assert manager.get_github_token() is None
    recommendations = manager.get_authentication_recommendations()
    assert any("GITHUB_TOKEN" in r for r in recommendations)


def test_token_precedence(monkeypatch):
    monkeypatch.setenv("GITHUB_PAT", "pat_token")
    monkeypatch.setenv("GH_TOKEN", "gh_token")
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))
    assert manager.get_github_token() == "gh_token"

    monkeypatch.setenv("GITHUB_TOKEN", "primary")
    assert manager.get_github_token() == "primary"
    assert manager.get_authentication_recommendations() == []


def test_blank_token_is_ignored(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "   ")
    monkeypatch.setenv("GITHUB_ACCESS_TOKEN", "fallback")
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=False))
    assert manager.get_github_token() == "fallback"


def test_loads_explicit_dotenv(tmp_path: Path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("GITHUB_TOKEN=from_dotenv\n")
    manager = EnvironmentAuthManager(EnvAuthConfig(dotenv_path=str(env_file)))
    assert manager.dotenv_file == env_file
    assert manager.get_github_token() == "from_dotenv"


def test_dotenv_does_not_override_environment(tmp_path: Path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("GITHUB_TOKEN=from_dotenv\n")
    monkeypatch.setenv("GITHUB_TOKEN", "from_env")
    manager = EnvironmentAuthManager(EnvAuthConfig(dotenv_path=str(env_file)))
    assert manager.get_github_token() == "from_env"


def test_online_environment_recommendations(monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    manager = create_env_auth_manager(EnvAuthConfig(load_dotenv=False))
    assert manager.is_online_environment()
    assert any("GitHub Actions" in r for r in manager.get_authentication_recommendations())


def test_factory_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    manager = create_env_auth_manager()
    assert manager.config.load_dotenv is True
    assert manager.dotenv_file is None
