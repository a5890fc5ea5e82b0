"""Structured configuration for the interpreter and its front ends."""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from omegaconf import DictConfig, OmegaConf

from chip8kit.constants import DEFAULT_CLOCK_HZ
from chip8kit.rendering import COLOR_SCHEMES
from chip8kit.state import Quirks


@dataclass
class QuirksConfig:
    shift_uses_vy: bool = False
    index_increment_on_store: bool = False
    jump_offset_uses_vx: bool = False


@dataclass
class DisplayConfig:
    scale: int = 8
    color_scheme: str = "classic"
    persistence: bool = False


@dataclass
class AudioConfig:
    enabled: bool = True
    frequency: float = 440.0
    volume: float = 0.25


@dataclass
class VMConfig:
    """Interpreter settings.

    Attributes:
        clock_hz: Instruction cycles per second of wall time
        max_catchup: Longest wall-time gap, in seconds, replayed in one quantum
        seed: Seed of the PRNG behind the RND instruction
        log_level: ConsoleLogger level name
    """
    clock_hz: int = DEFAULT_CLOCK_HZ
    max_catchup: float = 0.25
    seed: int = 0
    log_level: str = "INFO"
    quirks: QuirksConfig = field(default_factory=QuirksConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def validate_config(cfg: DictConfig) -> DictConfig:
    if cfg.clock_hz <= 0:
        raise ValueError(f"clock_hz must be positive, got {cfg.clock_hz}")
    if cfg.max_catchup <= 0:
        raise ValueError(f"max_catchup must be positive, got {cfg.max_catchup}")
    if cfg.log_level.upper() not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{cfg.log_level}'. Available: {list(LOG_LEVELS)}")
    if cfg.display.scale < 1:
        raise ValueError(f"display.scale must be at least 1, got {cfg.display.scale}")
    if cfg.display.color_scheme not in COLOR_SCHEMES:
        raise ValueError(
            f"Unknown color scheme '{cfg.display.color_scheme}'. Available: {list(COLOR_SCHEMES)}"
        )
    if not 0.0 <= cfg.audio.volume <= 1.0:
        raise ValueError(f"audio.volume must be in [0, 1], got {cfg.audio.volume}")
    if cfg.audio.frequency <= 0:
        raise ValueError(f"audio.frequency must be positive, got {cfg.audio.frequency}")
    return cfg


def load_config(path: Optional[str] = None, overrides: Sequence[str] = ()) -> DictConfig:
    """Merge defaults, an optional YAML file and ``key=value`` overrides.

    Args:
        path: YAML file with any subset of the VMConfig fields
        overrides: dot-list entries such as ``display.scale=4``

    Returns:
        Validated, type-checked DictConfig
    """
    cfg = OmegaConf.structured(VMConfig)
    if path is not None:
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    return validate_config(cfg)


def quirks_from_config(cfg: DictConfig) -> Quirks:
    return Quirks(
        shift_uses_vy=bool(cfg.quirks.shift_uses_vy),
        index_increment_on_store=bool(cfg.quirks.index_increment_on_store),
        jump_offset_uses_vx=bool(cfg.quirks.jump_offset_uses_vx),
    )
