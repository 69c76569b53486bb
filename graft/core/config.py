"""Configuration management for Graft.

This module provides a clean interface for reading and writing
both repository-local and global configuration files.
"""

import os
import configparser
from pathlib import Path
from typing import Dict, Optional, Tuple

DEFAULT_AUTHOR = 'Unknown <unknown@localhost>'


class Config:
    """
    Manages Graft configuration files.

    Configuration is stored in INI format:
    - Global config: ~/.graftconfig
    - Repository config: .graft/config

    Repository config takes precedence over global config.
    Environment variables take highest precedence.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.graftconfig'

    def __init__(self, repo_config_path: Optional[Path] = None):
        """
        Initialize Config manager.

        Args:
            repo_config_path: Path to repository config file, if in a repo
        """
        self.repo_config_path = repo_config_path
        self._global_config = None
        self._repo_config = None

    @property
    def global_config(self) -> configparser.ConfigParser:
        """Load and return global configuration."""
        if self._global_config is None:
            self._global_config = configparser.ConfigParser()
            if self.GLOBAL_CONFIG_PATH.exists():
                self._global_config.read(self.GLOBAL_CONFIG_PATH)
        return self._global_config

    @property
    def repo_config(self) -> Optional[configparser.ConfigParser]:
        """Load and return repository configuration."""
        if self._repo_config is None and self.repo_config_path:
            self._repo_config = configparser.ConfigParser()
            if self.repo_config_path.exists():
                self._repo_config.read(self.repo_config_path)
        return self._repo_config

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Priority order (highest to lowest):
        1. Environment variables (GRAFT_<SECTION>_<KEY>)
        2. Repository config
        3. Global config
        4. Fallback value
        """
        env_value = os.environ.get(f"GRAFT_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        if self.repo_config and self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)

        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)

        return fallback

    def _target(self, global_config: bool) -> Tuple[configparser.ConfigParser, Path]:
        if global_config:
            return self.global_config, self.GLOBAL_CONFIG_PATH
        if not self.repo_config_path:
            raise ValueError("No repository config path available")
        return self.repo_config, self.repo_config_path

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """
        Set a configuration value.

        Args:
            section: Config section
            key: Config key
            value: Value to set
            global_config: If True, write to global config; otherwise repo config
        """
        config, config_path = self._target(global_config)

        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, value)

        with open(config_path, 'w') as f:
            config.write(f)

    def unset(self, section: str, key: str, global_config: bool = False) -> bool:
        """
        Remove a configuration value.

        Returns:
            True if value was removed, False if it didn't exist
        """
        config, config_path = self._target(global_config)

        if not config.has_option(section, key):
            return False

        config.remove_option(section, key)
        if not config.options(section):
            config.remove_section(section)

        with open(config_path, 'w') as f:
            config.write(f)

        return True

    def list_all(self) -> Dict[str, Dict[str, str]]:
        """All values, repository entries overriding global ones."""
        result: Dict[str, Dict[str, str]] = {}
        for config in (self.global_config, self.repo_config):
            if config is None:
                continue
            for section in config.sections():
                result.setdefault(section, {}).update(config.items(section))
        return result

    def get_user_identity(self) -> Tuple[Optional[str], Optional[str]]:
        """
        Get user name and email for commits.

        Returns:
            Tuple of (name, email), either may be None
        """
        return self.get('user', 'name'), self.get('user', 'email')

    def get_author(self) -> str:
        """Identity string "Name <email>" for new commits."""
        name, email = self.get_user_identity()
        if not name and not email:
            return DEFAULT_AUTHOR
        return f"{name or 'Unknown'} <{email or 'unknown@localhost'}>"


def get_config(repo=None) -> Config:
    """
    Get a Config instance.

    Args:
        repo: Repository instance, or None for global-only config
    """
    if repo:
        return Config(repo.config_file)
    return Config()
