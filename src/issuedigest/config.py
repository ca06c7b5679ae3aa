from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .github_rest import DEFAULT_API_URL
from .reconcile import (
    DEFAULT_DIFFICULTIES,
    DEFAULT_ONBOARD_CATEGORIES,
    DEFAULT_ONBOARD_LABELS,
    DEFAULT_ONBOARD_TARGET_LABEL,
    DEFAULT_ONBOARD_TITLE,
    DEFAULT_PLAN_CATEGORIES,
    DEFAULT_PLAN_LABEL,
    DEFAULT_PLAN_TITLE,
    DEFAULT_PRIORITIES,
)
from .render import DEFAULT_WEB_URL

CONFIG_DEFAULT = 'issuedigest.config.yaml'


class ConfigError(RuntimeError):
    pass


@dataclass
class DigestConfig:
    source_file: Path | None = None
    github_repo: str | None = None
    api_url: str = DEFAULT_API_URL
    web_url: str = DEFAULT_WEB_URL
    # Planning digest
    plan_target_label: str = DEFAULT_PLAN_LABEL
    plan_target_title: str = DEFAULT_PLAN_TITLE
    plan_category_labels: list[str] = field(default_factory=lambda: list(DEFAULT_PLAN_CATEGORIES))
    plan_priority_labels: list[str] = field(default_factory=lambda: list(DEFAULT_PRIORITIES))
    plan_exclude_pull_requests: bool = True
    # Onboarding digest
    onboard_labels: list[str] = field(default_factory=lambda: list(DEFAULT_ONBOARD_LABELS))
    onboard_difficulty_labels: list[str] = field(default_factory=lambda: list(DEFAULT_DIFFICULTIES))
    onboard_category_labels: list[str] = field(
        default_factory=lambda: list(DEFAULT_ONBOARD_CATEGORIES)
    )
    onboard_target_label: str = DEFAULT_ONBOARD_TARGET_LABEL
    onboard_target_title: str = DEFAULT_ONBOARD_TITLE
    # Behavior
    dry_run_default: bool = False
    auto_confirm: bool = False
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = 'WARNING'
    # Environment authentication configuration
    env_auth_load_dotenv: bool = True
    env_auth_dotenv_path: str | None = None


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)
    return value


def parse_label_list(value: Any, default: list[str] | tuple[str, ...]) -> list[str]:
    """Accept a YAML list or a comma-separated string; ``None`` keeps the default."""
    if value is None:
        return list(default)
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ConfigError(f'Expected a list or comma-separated string of labels, got {value!r}')
    return [item.strip() for item in items if item.strip()]


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f'Configuration section {name!r} must be a mapping')
    return cast(dict[str, Any], value)


def default_config() -> DigestConfig:
    return DigestConfig()


def load_config(path: str | Path) -> DigestConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw = yaml.safe_load(p.read_text(encoding='utf-8')) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f'Failed to read configuration {p}: {exc}') from exc
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration root must be a mapping: {p}')

    gh = _section(raw, 'github')
    plan = _section(raw, 'plan')
    onboard = _section(raw, 'onboard')
    behavior = _section(raw, 'behavior')
    logging_config = _section(raw, 'logging')
    env_auth = _section(raw, 'environment')

    repo = _resolve_env_var(gh.get('repo'))
    if isinstance(repo, str) and repo.startswith('$'):
        # Unset variable: fall through to the other repository sources.
        repo = None

    return DigestConfig(
        source_file=p,
        github_repo=repo or None,
        api_url=str(gh.get('api_url') or DEFAULT_API_URL),
        web_url=str(gh.get('web_url') or DEFAULT_WEB_URL),
        plan_target_label=str(plan.get('target_label') or DEFAULT_PLAN_LABEL),
        plan_target_title=str(plan.get('target_title') or DEFAULT_PLAN_TITLE),
        plan_category_labels=parse_label_list(plan.get('category_labels'), DEFAULT_PLAN_CATEGORIES),
        plan_priority_labels=parse_label_list(plan.get('priority_labels'), DEFAULT_PRIORITIES),
        plan_exclude_pull_requests=bool(plan.get('exclude_pull_requests', True)),
        onboard_labels=parse_label_list(onboard.get('onboard_labels'), DEFAULT_ONBOARD_LABELS),
        onboard_difficulty_labels=parse_label_list(
            onboard.get('difficulty_labels'), DEFAULT_DIFFICULTIES
        ),
        onboard_category_labels=parse_label_list(
            onboard.get('category_labels'), DEFAULT_ONBOARD_CATEGORIES
        ),
        onboard_target_label=str(onboard.get('target_label') or DEFAULT_ONBOARD_TARGET_LABEL),
        onboard_target_title=str(onboard.get('target_title') or DEFAULT_ONBOARD_TITLE),
        dry_run_default=bool(behavior.get('dry_run_default', False)),
        auto_confirm=bool(behavior.get('auto_confirm', False)),
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'WARNING')),
        env_auth_load_dotenv=bool(env_auth.get('load_dotenv', True)),
        env_auth_dotenv_path=env_auth.get('dotenv_path'),
    )


__all__ = [
    'CONFIG_DEFAULT',
    'ConfigError',
    'DigestConfig',
    'default_config',
    'load_config',
    'parse_label_list',
]
