"""Configuration management for sprig.

This module provides a clean interface for reading and writing
both repository-local and global configuration files.
"""

import os
import configparser
from pathlib import Path
from typing import Optional, Tuple

from .errors import InvalidFormat


class Config:
    """
    Manages sprig configuration files.
    
    Configuration is stored in INI format, similar to Git:
    - Global config: ~/.sprigconfig
    - Repository config: .sprig/config
    
    Repository config takes precedence over global config.
    Environment variables take highest precedence.
    """
    
    GLOBAL_CONFIG_PATH = Path.home() / '.sprigconfig'
    
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
        1. Environment variables (SPRIG_<SECTION>_<KEY>)
        2. Repository config
        3. Global config
        4. Fallback value
        
        Args:
            section: Config section (e.g., 'user', 'core')
            key: Config key (e.g., 'name', 'email')
            fallback: Default value if not found
        
        Returns:
            Configuration value or fallback
        """
        env_key = f"SPRIG_{section.upper()}_{key.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value
        
        if self.repo_config and self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)
        
        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)
        
        return fallback
    
    def get_int(self, section: str, key: str, fallback: int) -> int:
        """
        Get an integer configuration value.
        
        Raises:
            InvalidFormat: The value is set but is not an integer
        """
        value = self.get(section, key)
        if value is None:
            return fallback
        try:
            return int(value)
        except ValueError:
            raise InvalidFormat(f"{section}.{key} must be an integer, got {value!r}") from None
    
    def set(self, section: str, key: str, value: str) -> None:
        """
        Set a value in the repository config and save it.
        
        Args:
            section: Config section
            key: Config key
            value: Value to set
        """
        if not self.repo_config_path:
            raise ValueError("No repository config path available")
        if self._repo_config is None:
            self._repo_config = configparser.ConfigParser()
            if self.repo_config_path.exists():
                self._repo_config.read(self.repo_config_path)
        config = self._repo_config
        
        if not config.has_section(section):
            config.add_section(section)
        
        config.set(section, key, value)
        
        with open(self.repo_config_path, 'w') as f:
            config.write(f)
    
    def get_user_identity(self) -> Tuple[Optional[str], Optional[str]]:
        """
        Get user name and email for commits.
        
        Returns:
            Tuple of (name, email), either may be None
        """
        name = self.get('user', 'name')
        email = self.get('user', 'email')
        return name, email
    
    @property
    def compression_level(self) -> int:
        """zlib level for stored objects (core.compression)."""
        level = self.get_int('core', 'compression', -1)
        if not -1 <= level <= 9:
            raise InvalidFormat(f"core.compression must be between -1 and 9, got {level}")
        return level


def get_config(repo=None) -> Config:
    """
    Get a Config instance.
    
    Args:
        repo: Repository instance, or None for global-only config
    
    Returns:
        Config instance
    """
    if repo:
        return Config(repo.config_file)
    return Config()
