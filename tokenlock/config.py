"""
config.py - Token configuration

TokenConfig captures everything needed to stand up a TimeLockToken: identity,
initial supply, owner, the default gradual release policy and auto cleanup.

Sources:
    TokenConfig(...)                 direct construction
    TokenConfig.from_mapping(dict)   nested plain dicts (e.g. parsed JSON)
    load_config(path)                JSON file

JSON layout (every key except name, symbol and owner is optional):
    {
        "name": "Time Lock Token",
        "symbol": "TLT",
        "decimals": 18,
        "initial_supply": 1000000,
        "owner": "treasury",
        "default_gradual_config": {"duration": 2592000, "interval": 86400, "enabled": true},
        "auto_cleanup": {"enabled": true, "threshold": 10}
    }
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union
import json
import logging

from .core import (
    GradualReleaseConfig, AutoCleanupConfig, SYSTEM_WALLET, DEFAULT_CLEANUP_THRESHOLD,
    default_gradual_config,
)
from .release_policy import validate_gradual_config

logger = logging.getLogger(__name__)

_KNOWN_KEYS = frozenset({
    'name', 'symbol', 'decimals', 'initial_supply', 'owner',
    'default_gradual_config', 'auto_cleanup',
})


def _section(data: Mapping[str, Any], key: str, fields: Tuple[str, ...]) -> Optional[Mapping[str, Any]]:
    """Nested mapping under `key`, or None when absent."""
    section = data.get(key)
    if section is None:
        return None
    if not isinstance(section, Mapping):
        raise ValueError(f"{key} must be a mapping, got {type(section).__name__}")
    unknown = set(section) - set(fields)
    if unknown:
        raise ValueError(f"Unknown keys in {key}: {sorted(unknown)}")
    return section


def _flag(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a bool, got {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class TokenConfig:
    """
    Immutable token configuration.

    Attributes:
        name: Human-readable token name
        symbol: Ticker symbol, also used as the ledger name
        owner: Administrator account; receives initial_supply
        decimals: Display precision of base units (amounts are always integers)
        initial_supply: Tokens minted to owner at construction
        default_gradual_config: Policy for locks created without one
        auto_cleanup: Compaction settings
    """
    name: str
    symbol: str
    owner: str
    decimals: int = 18
    initial_supply: int = 0
    default_gradual_config: GradualReleaseConfig = field(default_factory=default_gradual_config)
    auto_cleanup: AutoCleanupConfig = field(default_factory=AutoCleanupConfig)

    def __post_init__(self):
        for name in ('name', 'symbol', 'owner'):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
        if self.owner == SYSTEM_WALLET:
            raise ValueError(f"owner cannot be the reserved {SYSTEM_WALLET!r} wallet")
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool) or self.decimals < 0:
            raise ValueError(f"decimals must be a non-negative int, got {self.decimals!r}")
        if (not isinstance(self.initial_supply, int) or isinstance(self.initial_supply, bool)
                or self.initial_supply < 0):
            raise ValueError(f"initial_supply must be a non-negative int, got {self.initial_supply!r}")
        validate_gradual_config(self.default_gradual_config)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TokenConfig:
        """
        Build a config from plain (e.g. JSON-parsed) data.

        Raises:
            ValueError: Unknown keys or malformed values
            InvalidGradualReleaseConfig, InvalidCleanupThreshold: Bad nested sections
        """
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")

        kwargs = {k: v for k, v in data.items()
                  if k not in ('default_gradual_config', 'auto_cleanup')}

        gradual = _section(data, 'default_gradual_config', ('duration', 'interval', 'enabled'))
        if gradual is not None:
            kwargs['default_gradual_config'] = GradualReleaseConfig(
                duration=gradual.get('duration', 0),
                interval=gradual.get('interval', 0),
                enabled=_flag('default_gradual_config.enabled', gradual.get('enabled', True)),
            )

        cleanup = _section(data, 'auto_cleanup', ('enabled', 'threshold'))
        if cleanup is not None:
            kwargs['auto_cleanup'] = AutoCleanupConfig(
                enabled=_flag('auto_cleanup.enabled', cleanup.get('enabled', True)),
                threshold=cleanup.get('threshold', DEFAULT_CLEANUP_THRESHOLD),
            )

        return cls(**kwargs)

    def to_mapping(self) -> dict:
        """Plain-data form, the inverse of from_mapping()."""
        return {
            'name': self.name,
            'symbol': self.symbol,
            'owner': self.owner,
            'decimals': self.decimals,
            'initial_supply': self.initial_supply,
            'default_gradual_config': {
                'duration': self.default_gradual_config.duration,
                'interval': self.default_gradual_config.interval,
                'enabled': self.default_gradual_config.enabled,
            },
            'auto_cleanup': {
                'enabled': self.auto_cleanup.enabled,
                'threshold': self.auto_cleanup.threshold,
            },
        }


def load_config(path: Union[str, Path]) -> TokenConfig:
    """Read a TokenConfig from a JSON file."""
    path = Path(path)
    with path.open() as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(data).__name__}")
    logger.info("Loaded token config from %s", path)
    return TokenConfig.from_mapping(data)
