"""Environment-based authentication for issuedigest.

The token is read from the process environment, optionally seeded from a
``.env`` file via python-dotenv. Only the client factory in the CLI ever
sees it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

TOKEN_VARIABLES = ("GITHUB_TOKEN", "GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GH_ACCESS_TOKEN", "GITHUB_PAT")
_DOTENV_FALLBACKS = (".env", ".env.local")


@dataclass
class EnvAuthConfig:
    """Configuration for environment-based authentication."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    token_variables: tuple[str, ...] = TOKEN_VARIABLES


class EnvironmentAuthManager:
    """Finds a GitHub token in environment variables and .env files."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self.dotenv_file: Path | None = None

        if config.load_dotenv:
            self._load_dotenv()

    def _load_dotenv(self) -> None:
        """Load the first .env file found; existing variables win."""
        locations = [self.config.dotenv_path] if self.config.dotenv_path else list(_DOTENV_FALLBACKS)
        for location in locations:
            env_path = Path(location)
            if env_path.is_file():
                load_dotenv(env_path, override=False)
                self.dotenv_file = env_path
                self.logger.debug(f"Loaded environment variables from {env_path}")
                return

    def get_github_token(self) -> str | None:
        """Get GitHub token from environment variables."""
        for var in self.config.token_variables:
            token = os.getenv(var)
            if token and token.strip():
                self.logger.debug(f"Found GitHub token in {var}")
                return token.strip()
        return None

    def is_online_environment(self) -> bool:
        """Detect if running in an online environment (Codespaces, CI, etc.)."""
        online_indicators = [
            'CODESPACES',
            'VSCODE_IPC_HOOK',
            'CI',
            'GITHUB_ACTIONS',
        ]
        for indicator in online_indicators:
            if os.getenv(indicator):
                self.logger.debug(f"Detected online environment: {indicator}")
                return True
        return False

    def get_authentication_recommendations(self) -> list[str]:
        """Get authentication setup recommendations based on environment."""
        if self.get_github_token():
            return []
        if self.is_online_environment():
            return [
                "Set GITHUB_TOKEN environment variable",
                "Or create .env file with GITHUB_TOKEN=your_token",
                "For GitHub Actions: pass secrets.GITHUB_TOKEN into the step environment",
            ]
        return [
            "Set GITHUB_TOKEN (or GH_TOKEN) environment variable",
            "Or create .env file with GITHUB_TOKEN=your_token",
            "With GitHub CLI installed: export GITHUB_TOKEN=$(gh auth token)",
        ]


def create_env_auth_manager(config: EnvAuthConfig | None = None) -> EnvironmentAuthManager:
    """Factory function to create environment authentication manager."""
    if config is None:
        config = EnvAuthConfig()
    return EnvironmentAuthManager(config)


__all__ = [
    "TOKEN_VARIABLES",
    "EnvAuthConfig",
    "EnvironmentAuthManager",
    "create_env_auth_manager",
]
