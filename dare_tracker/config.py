"""
Configuration Management

Unified configuration for the DARE YIW Tracker report engine. Consolidates
database, logging, web and report settings with JSON file support and
environment variable overrides.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import os
import json
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


class Environment(Enum):
    """Supported environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Supported log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class DatabaseConfig:
    """Database configuration with connection settings"""
    path: Path = field(default_factory=lambda: Path("data/database/dare_tracker.db"))
    journal_mode: str = "WAL"
    connection_timeout: int = 30
    max_connections: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    logs_dir: Path = field(default_factory=lambda: Path("data/logs"))
    file_rotation_size: int = 10 * 1024 * 1024  # 10MB
    file_retention_count: int = 5
    enable_console: bool = True
    enable_file: bool = False


@dataclass
class WebConfig:
    """Web interface configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "info"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class ReportConfig:
    """Report listing and export settings"""
    default_page_size: int = 10
    max_page_size: int = 500
    # Hard cap on rows pulled by a single export or full-set aggregate
    export_row_cap: int = 100_000
    timestamp_filenames: bool = False
    districts: List[str] = field(default_factory=lambda: [
        "Bekwai",
        "Gushegu",
        "Lower Manya Krobo",
        "Yilo Krobo",
    ])
    dare_models: List[str] = field(default_factory=lambda: [
        "Collaborative",
        "MakerSpace",
        "Madam Anchor",
    ])
    service_categories: Dict[int, str] = field(default_factory=lambda: {
        1: "Building & Construction",
        2: "Food & Beverage",
        3: "Fashion & Apparel",
        4: "Beauty & Wellness",
        5: "Media & Creative Arts",
    })


class UnifiedConfig:
    """
    Unified configuration manager.

    Singleton loaded from an optional .config.json file with environment
    variable overrides (DARE_* / WEB_*). Environment always wins over JSON.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self.load()
        UnifiedConfig._initialized = True

    def load(self):
        """(Re)load every section from JSON and the environment"""
        self._json_config = self._load_json_config()

        env_mode = os.getenv(
            'DARE_ENVIRONMENT',
            self._get_config_value('environment', 'mode', default='development')
        )
        try:
            self.environment = Environment(env_mode)
        except ValueError:
            logging.getLogger(__name__).warning(
                f"Unknown environment '{env_mode}', using development"
            )
            self.environment = Environment.DEVELOPMENT

        self.database = self._load_database_config()
        self.logging = self._load_logging_config()
        self.web = self._load_web_config()
        self.reports = self._load_report_config()

    def _load_json_config(self) -> Dict[str, Any]:
        """Load .config.json from the working directory, if present"""
        config_path = Path(os.getenv('DARE_CONFIG_FILE', '.config.json'))
        if not config_path.exists():
            return {}
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logging.getLogger(__name__).warning(f"Could not read {config_path}: {e}")
            return {}

    def _get_config_value(self, *keys, default=None):
        """Walk nested JSON keys, returning default on any miss"""
        value = self._json_config
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    @staticmethod
    def _env_int(name: str, fallback: int) -> int:
        raw = os.getenv(name)
        if raw is None or raw == '':
            return int(fallback)
        try:
            return int(raw)
        except ValueError:
            logging.getLogger(__name__).warning(
                f"Ignoring non-numeric {name}={raw!r}, using {fallback}"
            )
            return int(fallback)

    @staticmethod
    def _env_bool(name: str, fallback: bool) -> bool:
        raw = os.getenv(name)
        if raw is None or raw == '':
            return bool(fallback)
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')

    def _load_database_config(self) -> DatabaseConfig:
        """Load database configuration from JSON and environment overrides"""
        db_config = self._get_config_value('database', default={}) or {}
        config = DatabaseConfig()

        config.path = Path(os.getenv('DARE_DATABASE_PATH', db_config.get('path', str(config.path))))
        config.connection_timeout = self._env_int(
            'DARE_DATABASE_TIMEOUT', db_config.get('connection_timeout', config.connection_timeout)
        )
        config.max_connections = self._env_int(
            'DARE_DATABASE_MAX_CONNECTIONS', db_config.get('max_connections', config.max_connections)
        )
        return config

    def _load_logging_config(self) -> LoggingConfig:
        """Load logging configuration from JSON and environment overrides"""
        log_config = self._get_config_value('logging', default={}) or {}
        config = LoggingConfig()

        log_level = os.getenv('DARE_LOG_LEVEL', log_config.get('level', 'INFO'))
        try:
            config.level = LogLevel(log_level.upper())
        except ValueError:
            config.level = LogLevel.INFO

        config.format = os.getenv('DARE_LOG_FORMAT', log_config.get('format', config.format))
        config.logs_dir = Path(os.getenv('DARE_LOGS_DIR', log_config.get('logs_dir', str(config.logs_dir))))
        config.enable_file = self._env_bool('DARE_LOG_TO_FILE', log_config.get('enable_file', config.enable_file))

        if self.environment == Environment.DEVELOPMENT and 'DARE_LOG_LEVEL' not in os.environ:
            config.level = LogLevel.DEBUG
        elif self.environment == Environment.PRODUCTION:
            config.enable_console = log_config.get('enable_console', False)

        return config

    def _load_web_config(self) -> WebConfig:
        """Load web configuration from JSON and environment overrides"""
        web_config = self._get_config_value('web', default={}) or {}
        config = WebConfig()

        config.host = os.getenv('WEB_HOST', web_config.get('host', config.host))
        config.port = self._env_int('WEB_PORT', web_config.get('port', config.port))
        config.log_level = os.getenv('WEB_LOG_LEVEL', web_config.get('log_level', config.log_level))
        config.cors_origins = web_config.get('cors_origins', config.cors_origins)

        if self.environment == Environment.DEVELOPMENT:
            config.reload = web_config.get('reload', True)

        return config

    def _load_report_config(self) -> ReportConfig:
        """Load report configuration from JSON and environment overrides"""
        report_config = self._get_config_value('reports', default={}) or {}
        config = ReportConfig()

        config.default_page_size = max(1, self._env_int(
            'DARE_DEFAULT_PAGE_SIZE', report_config.get('default_page_size', config.default_page_size)
        ))
        config.max_page_size = max(config.default_page_size, self._env_int(
            'DARE_MAX_PAGE_SIZE', report_config.get('max_page_size', config.max_page_size)
        ))
        config.export_row_cap = max(1, self._env_int(
            'DARE_EXPORT_ROW_CAP', report_config.get('export_row_cap', config.export_row_cap)
        ))
        config.timestamp_filenames = self._env_bool(
            'DARE_TIMESTAMP_FILENAMES', report_config.get('timestamp_filenames', config.timestamp_filenames)
        )
        if report_config.get('districts'):
            config.districts = list(report_config['districts'])
        return config

    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == Environment.PRODUCTION


# Global configuration instance (singleton)
config = UnifiedConfig()


def setup_logging(log_config: Optional[LoggingConfig] = None):
    """Setup logging configuration based on current config"""
    log_config = log_config or config.logging
    root_logger = logging.getLogger()

    logging.basicConfig(
        level=getattr(logging, log_config.level.value),
        format=log_config.format,
        datefmt=log_config.date_format,
        force=True
    )

    if log_config.enable_file:
        log_config.logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_config.logs_dir / f"dare_tracker_{datetime.now().strftime('%Y%m%d')}.log"

        existing_file_handler = None
        for handler in root_logger.handlers:
            if isinstance(handler, logging.handlers.RotatingFileHandler):
                if handler.baseFilename == str(log_file.resolve()):
                    existing_file_handler = handler
                    break

        if existing_file_handler is None:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=log_config.file_rotation_size,
                backupCount=log_config.file_retention_count
            )
            file_handler.setFormatter(logging.Formatter(log_config.format, log_config.date_format))
            root_logger.addHandler(file_handler)

    # Console output is dropped in production unless explicitly enabled
    if not log_config.enable_console and config.is_production():
        root_logger.handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
            or not isinstance(h, logging.StreamHandler)
        ]
