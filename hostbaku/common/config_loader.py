"""
Unified Configuration Loader for HostBaku

Loads configuration from YAML files and resolves secrets from the
environment. Provides a single source of truth for all application
configuration.
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from decouple import config as env_config
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _load_root_env():
    """Load root .env file for local development secrets."""
    root_env = Path(__file__).parent.parent.parent / '.env'
    if root_env.exists():
        load_dotenv(root_env)
        logger.debug(f"Loaded root .env from {root_env}")


# Load root .env on module import
_load_root_env()


class ConfigSection:
    """
    Dynamic configuration section that allows dot-notation access.
    Example: config.database.backend.host

    Keys ending in _env name an environment variable; reading the key
    returns that variable's value (e.g. password_env: DB_PASSWORD).
    """

    def __init__(self, data: Dict[str, Any] = None):
        self._data = data or {}

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            return super().__getattribute__(name)

        if name not in self._data:
            return None

        value = self._data[name]

        # If it's a dict, wrap it in ConfigSection for nested access
        if isinstance(value, dict):
            return ConfigSection(value)

        # If key ends with _env, resolve from environment
        if isinstance(value, str) and name.endswith('_env'):
            return resolve_env(value)

        return value

    def __getitem__(self, key: str) -> Any:
        return getattr(self, key)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value with optional default."""
        value = getattr(self, key)
        return value if value is not None else default

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (does not resolve environment references)."""
        return self._data.copy()

    def __repr__(self):
        return f"ConfigSection({list(self._data.keys())})"


def resolve_env(variable: str, default: Any = None) -> Any:
    """Read an environment variable (or .env entry) by name."""
    return env_config(variable, default=default)


class AppConfig:
    """
    Main application configuration.
    Loads every *.yaml file in the config directory as a named section.
    """

    def __init__(self, config_dir: str = None):
        """
        Initialize configuration.

        Args:
            config_dir: Path to config directory containing YAML files
        """
        self._config_dir = Path(config_dir) if config_dir else self._find_config_dir()
        self._sections: Dict[str, ConfigSection] = {}

        # Load all config files
        self._load_configs()

    def _find_config_dir(self) -> Path:
        """Find config directory: env override, then next to the package, then cwd."""
        override = os.environ.get('HOSTBAKU_CONFIG_DIR')
        if override:
            return Path(override)

        config_path = Path(__file__).parent.parent.parent / "config"
        if config_path.exists():
            return config_path

        return Path.cwd() / "config"

    def _load_configs(self):
        """Load all YAML config files."""
        if not self._config_dir.exists():
            logger.warning(f"Config directory not found: {self._config_dir}")
            return

        for yaml_file in sorted(self._config_dir.glob("*.yaml")):
            section_name = yaml_file.stem  # filename without extension
            try:
                with open(yaml_file, 'r') as f:
                    data = yaml.safe_load(f) or {}
                self._sections[section_name] = ConfigSection(data)
                logger.debug(f"Loaded config: {section_name}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load {yaml_file}: {e}")

    def __getattr__(self, name: str) -> ConfigSection:
        if name.startswith('_'):
            return super().__getattribute__(name)

        if name in self._sections:
            return self._sections[name]

        # Return empty section for missing configs
        return ConfigSection({})

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def get_config_files(self) -> list:
        """List all loaded config files."""
        return list(self._sections.keys())


# =============================================================================
# Singleton instance and convenience functions
# =============================================================================

_config_instance: Optional[AppConfig] = None


def get_config(config_dir: str = None) -> AppConfig:
    """
    Get or create the global config instance.

    Args:
        config_dir: Path to config directory (only used on first call)

    Returns:
        AppConfig instance
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = AppConfig(config_dir)

    return _config_instance


# =============================================================================
# Helper functions for common config access patterns
# =============================================================================

def get_database_url(db_name: str = 'backend') -> str:
    """
    Build database URL from config.

    A full URL in the environment (url_env) wins over the individual fields.

    Args:
        db_name: Database section name

    Returns:
        SQLAlchemy connection URL
    """
    config = get_config()
    db = getattr(config.database, db_name)

    if db is None:
        raise ValueError(f"Database config not found: {db_name}")

    url = db.url_env
    if url:
        return url

    password = db.password_env
    if not password:
        raw_key = db.to_dict().get('password_env', 'unknown')
        raise ValueError(f"Database password not set in environment variable: {raw_key}")

    return (
        f"postgresql://{db.username}:{password}"
        f"@{db.host}:{db.port or 5432}/{db.name}"
        f"?sslmode={db.sslmode or 'prefer'}"
    )


def get_flask_config() -> Dict[str, Any]:
    """Get Flask configuration dictionary."""
    config = get_config()
    app_cfg = config.app

    secret_key = app_cfg.flask.secret_key_env if app_cfg.flask else None
    if not secret_key:
        # Generate a random key if not in environment
        import secrets
        secret_key = secrets.token_hex(32)
        logger.warning("Flask secret key not in environment, using random key")

    jwt_cfg = app_cfg.jwt
    return {
        'SECRET_KEY': secret_key,
        'DEBUG': app_cfg.app.debug if app_cfg.app else False,
        'JWT_SECRET': jwt_cfg.secret_env if jwt_cfg else None,
        'JWT_ALGORITHM': jwt_cfg.get('algorithm', 'HS256') if jwt_cfg else 'HS256',
        'JWT_EXPIRES_DAYS': jwt_cfg.get('expires_days', 7) if jwt_cfg else 7,
        'RATELIMIT_ENABLED': app_cfg.rate_limit.get('enabled', True) if app_cfg.rate_limit else True,
    }


def get_statement_settings() -> ConfigSection:
    """Statement presentation and fee settings (statements section of app.yaml)."""
    statements = get_config().app.statements
    return statements if statements is not None else ConfigSection({})
