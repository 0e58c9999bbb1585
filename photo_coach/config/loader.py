"""
Configuration management and loading.

Handles the YAML settings file and API key environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

from photo_coach.core.pricing import PRICING_TABLE, PricingEntry, PricingTable
from photo_coach.core.retry import DEFAULT_INITIAL_DELAY_MS, DEFAULT_MAX_RETRIES
from photo_coach.core.simulation import DEFAULT_SCALE_VOLUME


API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

DEFAULT_TIER = "pro"
DEFAULT_ANALYSIS_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"


class CoachConfigurationError(Exception):
    """Misconfiguration of credentials or settings."""


@dataclass(frozen=True)
class ModelConfig:
    """Remote model selection and the pricing tier it bills under."""
    tier: str = DEFAULT_TIER
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL

    def __post_init__(self):
        """Validate model names are present."""
        if not self.tier:
            raise ValueError("tier cannot be empty")
        if not self.analysis_model:
            raise ValueError("analysis_model cannot be empty")
        if not self.image_model:
            raise ValueError("image_model cannot be empty")


@dataclass(frozen=True)
class RetryConfig:
    """Backoff parameters for remote requests."""
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS

    def __post_init__(self):
        """Validate retry values are non-negative."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")


@dataclass(frozen=True)
class ScaleConfig:
    """Volume used for at-scale cost projections."""
    volume: int = DEFAULT_SCALE_VOLUME

    def __post_init__(self):
        if self.volume <= 0:
            raise ValueError("volume must be > 0")


@dataclass(frozen=True)
class CoachConfig:
    """Complete application configuration."""
    model: ModelConfig = field(default_factory=ModelConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    scale: ScaleConfig = field(default_factory=ScaleConfig)
    pricing_table: PricingTable = PRICING_TABLE

    def pricing_entry(self) -> PricingEntry:
        """Get pricing for the configured tier."""
        return self.pricing_table.rate_for(self.model.tier)


def default_config() -> CoachConfig:
    """Built-in configuration used when no file is given."""
    return CoachConfig()


def resolve_api_key(api_key: Optional[str] = None) -> str:
    """Return the explicit key or the first one set in the environment.

    Raises:
        CoachConfigurationError: If no key is available
    """
    if api_key and api_key.strip():
        return api_key.strip()
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    raise CoachConfigurationError(
        "GEMINI_API_KEY or GOOGLE_API_KEY must be set to call the model."
    )


def load_coach_config(path: str) -> CoachConfig:
    """Load and validate configuration from a YAML file.

    Strict validation ensures no silent misconfigurations, such as a typo
    in a pricing tier that would misreport costs.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated CoachConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'model', 'retry', 'pricing', 'scale'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    model_data = _section(raw_config, 'model', {'tier', 'analysis_model', 'image_model'})
    for key, value in model_data.items():
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"'model.{key}' must be a non-empty string")
    model = ModelConfig(**model_data)

    retry_data = _section(raw_config, 'retry', {'max_retries', 'initial_delay_ms'})
    for key, value in retry_data.items():
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"'retry.{key}' must be an integer >= 0")
    retry = RetryConfig(**retry_data)

    scale_data = _section(raw_config, 'scale', {'volume'})
    if 'volume' in scale_data:
        volume = scale_data['volume']
        if not isinstance(volume, int) or isinstance(volume, bool) or volume <= 0:
            raise ValueError("'scale.volume' must be an integer > 0")
    scale = ScaleConfig(**scale_data)

    pricing_data = raw_config.get('pricing', {}) or {}
    if not isinstance(pricing_data, dict):
        raise ValueError("'pricing' must be a dictionary")

    prices: Dict[str, PricingEntry] = dict(PRICING_TABLE.prices)
    for tier_name, tier_data in pricing_data.items():
        if not isinstance(tier_data, dict):
            raise ValueError(f"Pricing tier '{tier_name}' must be a dictionary")
        prices[str(tier_name)] = _parse_pricing_entry(tier_data, f"pricing.{tier_name}")

    pricing_table = PricingTable(prices)
    if model.tier not in pricing_table.prices:
        raise ValueError(
            f"'model.tier' must be one of: {pricing_table.tiers}"
        )

    return CoachConfig(
        model=model,
        retry=retry,
        scale=scale,
        pricing_table=pricing_table
    )


def _section(raw_config: Dict, name: str, allowed_keys: set) -> Dict:
    """Fetch an optional section and reject unknown keys."""
    data = raw_config.get(name, {}) or {}
    if not isinstance(data, dict):
        raise ValueError(f"'{name}' must be a dictionary")
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {name}: {unknown_keys}")
    return data


def _parse_pricing_entry(data: Dict, path: str) -> PricingEntry:
    """Parse and validate a pricing tier quoted per 1M tokens.

    Args:
        data: Tier pricing data
        path: Path for error messages

    Returns:
        Validated PricingEntry

    Raises:
        ValueError: If pricing is invalid
    """
    required_keys = {'input_per_million', 'output_per_million', 'cached_input_per_million'}
    unknown_keys = set(data.keys()) - required_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    rates = {}
    for key in sorted(required_keys):
        if key not in data:
            raise ValueError(f"Missing required '{key}' in {path}")
        value = data[key]
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            raise ValueError(f"'{key}' in {path} must be a number >= 0")
        rates[key] = float(value)

    return PricingEntry.per_million(
        input=rates['input_per_million'],
        output=rates['output_per_million'],
        cached_input=rates['cached_input_per_million']
    )
