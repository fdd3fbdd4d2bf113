# -*- coding: utf-8 -*-
"""
GreenVisio Engine Configuration

Centralized configuration for the meeting damage engine covering:
- Logging level
- Location of the reference YAML tables
- Default bound selection for hardware, bandwidth and network ranges
- Payload size limits
- Provenance tracking (genesis hash, SHA-256 chain anchoring)
- Prometheus metrics export toggle

All settings can be overridden via environment variables with the
``GL_VISIO_`` prefix (e.g. ``GL_VISIO_DEFAULT_HARDWARE_BOUND``).

Environment Variable Reference (GL_VISIO_ prefix):
    GL_VISIO_LOG_LEVEL                 - Logging level (DEBUG/INFO/WARNING/ERROR)
    GL_VISIO_DATA_DIR                  - Directory holding hardware.yaml,
                                         software.yaml and transport.yaml
    GL_VISIO_DEFAULT_HARDWARE_BOUND    - LOWER or UPPER
    GL_VISIO_DEFAULT_BANDWIDTH_BOUND   - LOWER or UPPER
    GL_VISIO_DEFAULT_NETWORK_BOUND     - LOWER or UPPER
    GL_VISIO_MAX_COMPONENTS            - Maximum entries per payload category
    GL_VISIO_ENABLE_PROVENANCE         - Enable SHA-256 provenance chain tracking
    GL_VISIO_GENESIS_HASH              - Genesis anchor string for provenance chain
    GL_VISIO_ENABLE_METRICS            - Enable Prometheus metrics export

Example:
    >>> from greenvisio.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.default_hardware_bound, cfg.max_components)
    UPPER 500

    >>> # Override for testing
    >>> from greenvisio.config import VisioConfig, set_config, reset_config
    >>> set_config(VisioConfig(default_hardware_bound="LOWER"))
    >>> reset_config()  # teardown
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_ENV_PREFIX = "GL_VISIO_"

_VALID_LOG_LEVELS = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)

_VALID_BOUNDS = frozenset({"LOWER", "UPPER"})


@dataclass
class VisioConfig:
    """Configuration for the GreenVisio meeting damage engine.

    Attributes:
        log_level: Logging verbosity level.
        data_dir: Directory containing the reference YAML tables. Empty
            means the tables packaged with greenvisio.
        default_hardware_bound: Bound used for ranged hardware damage when
            a request does not choose one.
        default_bandwidth_bound: Bound used for ranged software bandwidth.
        default_network_bound: Bound used for the network energy intensity.
        max_components: Maximum hardware, software or journey entries
            accepted in a single request, per category.
        enable_provenance: Record SHA-256 provenance entries for every
            computed meeting.
        genesis_hash: Anchor string used as the root of the provenance chain.
        enable_metrics: Export Prometheus metrics under the ``gl_visio_`` prefix.
    """

    log_level: str = "INFO"
    data_dir: str = ""

    default_hardware_bound: str = "UPPER"
    default_bandwidth_bound: str = "UPPER"
    default_network_bound: str = "UPPER"

    max_components: int = 500

    enable_provenance: bool = True
    genesis_hash: str = "greenlang-visio-genesis"

    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate and normalise configuration values.

        Raises:
            ValueError: If any value is out of range. The message lists every
                detected error, not just the first one.
        """
        errors: list[str] = []

        normalised_log = self.log_level.upper()
        if normalised_log not in _VALID_LOG_LEVELS:
            errors.append(
                f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}, "
                f"got '{self.log_level}'"
            )
        else:
            self.log_level = normalised_log

        for name in (
            "default_hardware_bound",
            "default_bandwidth_bound",
            "default_network_bound",
        ):
            value = getattr(self, name).upper()
            if value not in _VALID_BOUNDS:
                errors.append(
                    f"{name} must be one of {sorted(_VALID_BOUNDS)}, "
                    f"got '{getattr(self, name)}'"
                )
            else:
                setattr(self, name, value)

        if self.max_components <= 0:
            errors.append(
                f"max_components must be > 0, got {self.max_components}"
            )

        if not self.genesis_hash:
            errors.append("genesis_hash must not be empty")

        if self.data_dir and not os.path.isdir(self.data_dir):
            errors.append(f"data_dir does not exist: '{self.data_dir}'")

        if errors:
            raise ValueError(
                "VisioConfig validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )

        logger.debug(
            "VisioConfig validated successfully: "
            "bounds=(hardware=%s, bandwidth=%s, network=%s), "
            "max_components=%d, provenance=%s, metrics=%s",
            self.default_hardware_bound,
            self.default_bandwidth_bound,
            self.default_network_bound,
            self.max_components,
            self.enable_provenance,
            self.enable_metrics,
        )

    @classmethod
    def from_env(cls) -> VisioConfig:
        """Build a VisioConfig from ``GL_VISIO_*`` environment variables.

        Boolean values accept ``true/1/yes`` (case-insensitive). Malformed
        integers fall back to the class default and emit a WARNING.

        Returns:
            Populated VisioConfig instance, validated via ``__post_init__``.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.strip().lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val.strip())
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%r, using default %d",
                    prefix,
                    name,
                    val,
                    default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val.strip()

        config = cls(
            log_level=_str("LOG_LEVEL", cls.log_level),
            data_dir=_str("DATA_DIR", cls.data_dir),
            default_hardware_bound=_str(
                "DEFAULT_HARDWARE_BOUND",
                cls.default_hardware_bound,
            ),
            default_bandwidth_bound=_str(
                "DEFAULT_BANDWIDTH_BOUND",
                cls.default_bandwidth_bound,
            ),
            default_network_bound=_str(
                "DEFAULT_NETWORK_BOUND",
                cls.default_network_bound,
            ),
            max_components=_int("MAX_COMPONENTS", cls.max_components),
            enable_provenance=_bool(
                "ENABLE_PROVENANCE",
                cls.enable_provenance,
            ),
            genesis_hash=_str("GENESIS_HASH", cls.genesis_hash),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
        )

        logger.info(
            "VisioConfig loaded: data_dir=%s, "
            "bounds=(hardware=%s, bandwidth=%s, network=%s), "
            "max_components=%d, provenance=%s, metrics=%s",
            config.data_dir or "<packaged>",
            config.default_hardware_bound,
            config.default_bandwidth_bound,
            config.default_network_bound,
            config.max_components,
            config.enable_provenance,
            config.enable_metrics,
        )
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration to a plain dictionary."""
        return {
            "log_level": self.log_level,
            "data_dir": self.data_dir,
            "default_hardware_bound": self.default_hardware_bound,
            "default_bandwidth_bound": self.default_bandwidth_bound,
            "default_network_bound": self.default_network_bound,
            "max_components": self.max_components,
            "enable_provenance": self.enable_provenance,
            "genesis_hash": self.genesis_hash,
            "enable_metrics": self.enable_metrics,
        }


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[VisioConfig] = None
_config_lock = threading.Lock()


def get_config() -> VisioConfig:
    """Return the singleton VisioConfig, creating it from env if needed."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = VisioConfig.from_env()
    return _config_instance


def set_config(config: VisioConfig) -> None:
    """Replace the singleton VisioConfig (testing and dependency injection)."""
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info(
        "VisioConfig replaced programmatically: "
        "bounds=(hardware=%s, bandwidth=%s, network=%s), max_components=%d",
        config.default_hardware_bound,
        config.default_bandwidth_bound,
        config.default_network_bound,
        config.max_components,
    )


def reset_config() -> None:
    """Reset the singleton so the next get_config() re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None
    logger.debug("VisioConfig singleton reset")


__all__ = [
    "VisioConfig",
    "get_config",
    "set_config",
    "reset_config",
]
