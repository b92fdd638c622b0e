#!/usr/bin/env python3
"""
Centralized Configuration Manager

Provides a single source of truth for report paths, thresholds, trend
history, CI and integration settings, built from environment variables
(after .env loading) with validation.
"""

import math
import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from pathlib import Path

from core.env_loader import get_env_flag, get_env_list, load_env_file
from core.exceptions import ConfigurationError
from core.models.metrics import MetricCategory
from core.thresholds import ThresholdConfig

logger = logging.getLogger(__name__)

THRESHOLD_ENV_VARS = {
    MetricCategory.PAGE_LOAD: 'PERF_THRESHOLD_PAGE_LOAD',
    MetricCategory.USER_ACTION: 'PERF_THRESHOLD_USER_ACTION',
    MetricCategory.API_CALL: 'PERF_THRESHOLD_API_CALL',
    MetricCategory.NETWORK: 'PERF_THRESHOLD_NETWORK',
    MetricCategory.OTHER: 'PERF_THRESHOLD_OTHER',
}


@dataclass
class PathsConfig:
    """Input and output locations, relative to the working directory by default."""
    output_dir: Path = Path(".")
    reports_dir: Path = Path("test-reports")
    results_file: Optional[Path] = None
    results_dir: Path = Path("test-results")
    metrics_dirs: List[Path] = field(default_factory=lambda: [Path("performance-metrics"),
                                                               Path("test-reports/metrics")])

    @classmethod
    def rooted_at(cls, output_dir: Path, reports_dir: Optional[Path] = None) -> 'PathsConfig':
        """Default layout below a single output directory."""
        reports_dir = reports_dir or output_dir / "test-reports"
        return cls(
            output_dir=output_dir,
            reports_dir=reports_dir,
            results_dir=output_dir / "test-results",
            metrics_dirs=[output_dir / "performance-metrics", reports_dir / "metrics"]
        )

    @property
    def markdown_report(self) -> Path:
        return self.output_dir / "performance.md"

    @property
    def html_report(self) -> Path:
        return self.reports_dir / "performance-report.html"

    @property
    def summary_json(self) -> Path:
        return self.reports_dir / "test-summary.json"

    @property
    def detailed_report(self) -> Path:
        return self.reports_dir / "detailed-test-report.html"

    def results_candidates(self) -> List[Path]:
        """Results file locations to try, in order."""
        if self.results_file:
            return [self.results_file]
        return [
            self.reports_dir / "test-results.json",
            self.output_dir / "playwright-report" / "results.json",
            self.output_dir / "results.json",
        ]


@dataclass
class ThresholdSettings:
    """Per-category threshold overrides in milliseconds."""
    overrides: Dict[str, float] = field(default_factory=dict)

    def to_threshold_config(self) -> ThresholdConfig:
        """Fresh, unlocked ThresholdConfig carrying the overrides."""
        return ThresholdConfig(self.overrides)


@dataclass
class TrendConfig:
    """Trend history settings."""
    trends_file: Path = Path("performance-reports/trends.json")
    max_entries: int = 50
    enabled: bool = True

    @property
    def report_file(self) -> Path:
        return self.trends_file.parent / "trend-report.md"


@dataclass
class CIConfig:
    """GitHub Actions environment."""
    is_ci: bool = False
    github_actions: bool = False
    step_summary_path: Optional[str] = None
    output_path: Optional[str] = None
    sha: Optional[str] = None
    ref_name: Optional[str] = None
    run_id: Optional[str] = None


@dataclass
class IntegrationConfig:
    """External integration configuration."""
    slack_webhook_url: Optional[str] = None
    slack_timeout: int = 10


@dataclass
class ApplicationConfig:
    """Core application configuration."""
    log_level: str = "INFO"
    verbose_logging: bool = False


@dataclass
class Config:
    """Master configuration container."""
    paths: PathsConfig
    thresholds: ThresholdSettings
    trends: TrendConfig
    ci: CIConfig
    integrations: IntegrationConfig
    app: ApplicationConfig

    environment: str = field(default_factory=lambda: os.getenv('ENVIRONMENT', 'development'))

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ['dev', 'development', 'local']

    def has_slack(self) -> bool:
        """Check if Slack integration is available."""
        return bool(self.integrations.slack_webhook_url)


class ConfigManager:
    """Manages application configuration with validation and environment loading."""

    def __init__(self, env_file_path: str = ".env", load_env: bool = True):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to .env file relative to project root
            load_env: Whether to read the .env file at all
        """
        self._config: Optional[Config] = None
        self._env_file_path = env_file_path
        if load_env:
            load_env_file(env_file_path)

    def get_config(self, force_reload: bool = False) -> Config:
        """
        Get application configuration.

        Args:
            force_reload: Force reloading configuration from environment

        Returns:
            Complete configuration object

        Raises:
            ConfigurationError: If any value is invalid
        """
        if self._config is None or force_reload:
            self._config = self._build_config()
        return self._config

    def _build_config(self) -> Config:
        """Build configuration from environment variables."""
        errors: List[str] = []

        output_dir = Path(os.getenv('PERF_OUTPUT_DIR') or '.')
        reports_dir = Path(os.getenv('PERF_REPORTS_DIR') or output_dir / 'test-reports')
        results_file = os.getenv('PERF_RESULTS_FILE')
        metrics_dirs = get_env_list('PERF_METRICS_DIRS')

        paths_config = PathsConfig.rooted_at(output_dir, reports_dir)
        if results_file:
            paths_config.results_file = Path(results_file)
        if metrics_dirs:
            paths_config.metrics_dirs = [Path(d) for d in metrics_dirs]

        overrides: Dict[str, float] = {}
        for category, env_var in THRESHOLD_ENV_VARS.items():
            value = self._get_number(env_var, errors)
            if value is not None:
                overrides[category.value] = value
        threshold_settings = ThresholdSettings(overrides=overrides)

        trend_config = TrendConfig(
            trends_file=Path(os.getenv('PERF_TRENDS_FILE') or output_dir / 'performance-reports' / 'trends.json'),
            max_entries=self._get_int('PERF_TREND_MAX_ENTRIES', 50, errors),
            enabled=not get_env_flag('PERF_DISABLE_TRENDS')
        )

        ci_config = CIConfig(
            is_ci=bool(os.getenv('CI') or os.getenv('GITHUB_ACTIONS')),
            github_actions=get_env_flag('GITHUB_ACTIONS'),
            step_summary_path=os.getenv('GITHUB_STEP_SUMMARY'),
            output_path=os.getenv('GITHUB_OUTPUT'),
            sha=os.getenv('GITHUB_SHA'),
            ref_name=os.getenv('GITHUB_REF_NAME'),
            run_id=os.getenv('GITHUB_RUN_ID')
        )

        integration_config = IntegrationConfig(
            slack_webhook_url=os.getenv('SLACK_WEBHOOK_URL'),
            slack_timeout=self._get_int('SLACK_TIMEOUT', 10, errors)
        )

        app_config = ApplicationConfig(
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            verbose_logging=get_env_flag('VERBOSE_LOGGING')
        )

        config = Config(
            paths=paths_config,
            thresholds=threshold_settings,
            trends=trend_config,
            ci=ci_config,
            integrations=integration_config,
            app=app_config
        )

        self._validate_config(config, errors)
        return config

    @staticmethod
    def _get_number(key: str, errors: List[str]) -> Optional[float]:
        """Read a numeric variable, recording an error instead of raising."""
        value = os.getenv(key)
        if value is None or value.strip() == '':
            return None
        try:
            return float(value)
        except ValueError:
            errors.append(f"{key} must be a number, got {value!r}")
            return None

    @classmethod
    def _get_int(cls, key: str, default: int, errors: List[str]) -> int:
        """Read an integer variable; only an unset or invalid value yields the default."""
        value = cls._get_number(key, errors)
        if value is None:
            return default
        if not math.isfinite(value):
            errors.append(f"{key} must be a finite number, got {value!r}")
            return default
        return int(value)

    def _validate_config(self, config: Config, errors: List[str]) -> None:
        """Validate configuration values."""
        for category, value in config.thresholds.overrides.items():
            if value <= 0:
                errors.append(f"{THRESHOLD_ENV_VARS[MetricCategory.parse(category)]} must be positive")

        if config.trends.max_entries < 1:
            errors.append("PERF_TREND_MAX_ENTRIES must be at least 1")

        if config.integrations.slack_timeout < 1:
            errors.append("SLACK_TIMEOUT must be at least 1 second")

        webhook = config.integrations.slack_webhook_url
        if webhook and not webhook.startswith('https://'):
            errors.append("SLACK_WEBHOOK_URL must start with https://")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if config.app.log_level not in valid_log_levels:
            errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

        if errors:
            raise ConfigurationError("environment", "; ".join(errors))

        logger.debug("Configuration validation passed")

    def update_logging(self) -> None:
        """Configure logging based on current configuration."""
        config = self.get_config()

        numeric_level = getattr(logging, config.app.log_level)
        logging.getLogger().setLevel(numeric_level)

        if config.app.verbose_logging:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        else:
            format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        for handler in logging.getLogger().handlers:
            handler.setLevel(numeric_level)
            formatter = logging.Formatter(format_str, datefmt='%Y-%m-%d %H:%M:%S')
            handler.setFormatter(formatter)

    def get_integration_status(self) -> Dict[str, Any]:
        """Get status of all integrations."""
        config = self.get_config()
        return {
            'slack_webhook': config.has_slack(),
            'github_actions': config.ci.github_actions,
            'step_summary': bool(config.ci.step_summary_path),
            'github_output': bool(config.ci.output_path),
        }


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> Config:
    """Get application configuration."""
    return get_config_manager().get_config()


def reset_config() -> None:
    """Reset configuration manager (useful for testing)."""
    global _config_manager
    _config_manager = None
