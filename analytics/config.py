"""
Analytics settings - defaults, YAML file and environment overrides.
Calculations never read settings implicitly; callers pass values explicitly.
"""

import os
import logging
import yaml
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Conventions shared by every calculation module
TRADING_DAYS = 252
RISK_FREE_RATE = 0.02
CONFIDENCE = 0.95

RSI_PERIOD = 14
BOLLINGER_PERIOD = 20
BOLLINGER_K = 2.0
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class ConfigError(Exception):
    """Raised when settings cannot be loaded or are invalid."""
    pass


@dataclass(frozen=True)
class AnalyticsSettings:
    """Scalar conventions applied by the CLI and report builders."""
    trading_days: int = TRADING_DAYS
    risk_free_rate: float = RISK_FREE_RATE
    confidence: float = CONFIDENCE
    log_level: str = 'WARNING'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(config_path: Optional[str] = None) -> AnalyticsSettings:
    """
    Load analytics settings.

    Resolution order: built-in defaults, then the YAML file (explicit
    path or ANALYTICS_CONFIG), then ANALYTICS_* environment variables.

    Args:
        config_path: Optional path to a YAML settings file

    Returns:
        Validated AnalyticsSettings

    Raises:
        ConfigError: If the file is missing or a value is invalid
    """
    values: Dict[str, Any] = {}

    if config_path is None:
        config_path = os.getenv('ANALYTICS_CONFIG')

    if config_path:
        values.update(_load_yaml(Path(config_path)))

    env_overrides = {
        'trading_days': os.getenv('ANALYTICS_TRADING_DAYS'),
        'risk_free_rate': os.getenv('ANALYTICS_RISK_FREE_RATE'),
        'confidence': os.getenv('ANALYTICS_CONFIDENCE'),
        'log_level': os.getenv('ANALYTICS_LOG_LEVEL'),
    }
    for key, raw in env_overrides.items():
        if raw is not None and raw != '':
            values[key] = raw

    return _build_settings(values)


def _load_yaml(config_file: Path) -> Dict[str, Any]:
    if not config_file.exists():
        raise ConfigError(f"Analytics config file not found: {config_file}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Analytics config must be a mapping: {config_file}")

    # Accept either a flat file or one nested under 'analytics'
    section = config.get('analytics', config)
    unknown = set(section) - set(AnalyticsSettings.__dataclass_fields__)
    if unknown:
        logger.warning(f"Ignoring unknown analytics settings: {sorted(unknown)}")

    return {k: v for k, v in section.items() if k in AnalyticsSettings.__dataclass_fields__}


def _build_settings(values: Dict[str, Any]) -> AnalyticsSettings:
    try:
        trading_days = int(values.get('trading_days', TRADING_DAYS))
        risk_free_rate = float(values.get('risk_free_rate', RISK_FREE_RATE))
        confidence = float(values.get('confidence', CONFIDENCE))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    log_level = str(values.get('log_level', 'WARNING')).upper()

    if trading_days <= 0:
        raise ConfigError(f"trading_days must be positive, got {trading_days}")

    if not 0.0 < confidence < 1.0:
        raise ConfigError(f"confidence must be between 0 and 1, got {confidence}")

    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"Unknown log level: {log_level}")

    return AnalyticsSettings(
        trading_days=trading_days,
        risk_free_rate=risk_free_rate,
        confidence=confidence,
        log_level=log_level
    )
