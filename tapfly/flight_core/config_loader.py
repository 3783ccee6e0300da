"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all tunables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


@dataclass(frozen=True)
class WorldConfig:
    """World geometry in pixels."""
    width: float
    height: float


@dataclass(frozen=True)
class EntityConfig:
    """The controlled entity (square hitbox)."""
    size: float
    x: float        # Fixed horizontal position (left edge)
    start_y: float  # Vertical position at session start


@dataclass(frozen=True)
class PhysicsConfig:
    """Per-tick physics constants."""
    gravity: float
    jump_impulse: float
    tick_rate_hz: float

    @property
    def tick_ms(self) -> float:
        """Physics tick period in milliseconds."""
        return 1000.0 / self.tick_rate_hz


@dataclass(frozen=True)
class ObstacleConfig:
    """Obstacle pair geometry and cadence."""
    speed: float
    width: float
    gap_height: float
    spawn_interval_ms: float
    margin_top: float
    margin_bottom: float


@dataclass(frozen=True)
class RewardConfig:
    """Reward constants applied per pass event."""
    coin_reward_base: float
    xp_per_pass: int


@dataclass(frozen=True)
class CapsConfig:
    """Limits for headless episodes."""
    max_ticks: int


@dataclass(frozen=True)
class ObservationConfig:
    """Observation packing parameters."""
    max_obstacles: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    Use dataclasses.replace() to derive variants.
    """
    world: WorldConfig
    entity: EntityConfig
    physics: PhysicsConfig
    obstacles: ObstacleConfig
    rewards: RewardConfig
    caps: CapsConfig
    observation: ObservationConfig

    @property
    def floor_y(self) -> float:
        """Largest legal entity Y (entity resting on the floor)."""
        return self.world.height - self.entity.size

    @property
    def gap_top_range(self) -> Tuple[float, float]:
        """Inclusive (low, high) range for a spawned obstacle's gap top."""
        low = self.obstacles.margin_top
        high = self.world.height - self.obstacles.gap_height - self.obstacles.margin_bottom
        return (low, high)


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    world = config.world
    entity = config.entity
    obstacles = config.obstacles

    if world.width <= 0 or world.height <= 0:
        raise ValueError(f"World size must be positive, got {world.width}x{world.height}")

    if config.physics.tick_rate_hz <= 0:
        raise ValueError(f"tick_rate_hz must be positive, got {config.physics.tick_rate_hz}")

    if obstacles.spawn_interval_ms <= 0:
        raise ValueError(
            f"spawn_interval_ms must be positive, got {obstacles.spawn_interval_ms}"
        )

    if obstacles.gap_height <= 0:
        raise ValueError(f"gap_height must be positive, got {obstacles.gap_height}")

    if obstacles.margin_top < 0 or obstacles.margin_bottom < 0:
        raise ValueError("Obstacle margins must be non-negative")

    # Gap plus both margins has to fit, otherwise the gap range is empty
    low, high = config.gap_top_range
    if high < low:
        raise ValueError(
            f"gap_height ({obstacles.gap_height}) plus margins "
            f"({obstacles.margin_top} + {obstacles.margin_bottom}) exceeds "
            f"world height ({world.height})"
        )

    if obstacles.width <= 0:
        raise ValueError(f"Obstacle width must be positive, got {obstacles.width}")

    if obstacles.speed <= 0:
        raise ValueError(f"Obstacle speed must be positive, got {obstacles.speed}")

    if entity.size <= 0 or entity.size >= world.height:
        raise ValueError(
            f"Entity size ({entity.size}) must be positive and smaller than "
            f"world height ({world.height})"
        )

    if entity.x < 0 or entity.x + entity.size > world.width:
        raise ValueError(f"Entity x ({entity.x}) places the entity outside the world")

    if not 0 <= entity.start_y <= config.floor_y:
        raise ValueError(
            f"start_y ({entity.start_y}) must be within [0, {config.floor_y}]"
        )

    if config.rewards.coin_reward_base < 0 or config.rewards.xp_per_pass < 0:
        raise ValueError("Reward constants must be non-negative")

    if config.caps.max_ticks <= 0:
        raise ValueError(f"max_ticks must be positive, got {config.caps.max_ticks}")

    if config.observation.max_obstacles < 1:
        raise ValueError(
            f"observation.max_obstacles must be at least 1, got "
            f"{config.observation.max_obstacles}"
        )


def config_from_dict(raw: Dict[str, Any]) -> GameConfig:
    """
    Build and validate a GameConfig from parsed YAML data.

    Args:
        raw: Mapping with the same layout as game_config.yaml.

    Returns:
        Validated GameConfig instance.

    Raises:
        ValueError: If config validation fails.
    """
    world_data = raw["world"]
    world = WorldConfig(
        width=float(world_data["width"]),
        height=float(world_data["height"])
    )

    entity_data = raw["entity"]
    entity = EntityConfig(
        size=float(entity_data["size"]),
        x=float(entity_data.get("x", 100)),
        start_y=float(entity_data.get("start_y", (world.height - float(entity_data["size"])) / 2))
    )

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        gravity=float(physics_data["gravity"]),
        jump_impulse=float(physics_data["jump_impulse"]),
        tick_rate_hz=float(physics_data.get("tick_rate_hz", 60))
    )

    obstacle_data = raw["obstacles"]
    obstacles = ObstacleConfig(
        speed=float(obstacle_data["speed"]),
        width=float(obstacle_data["width"]),
        gap_height=float(obstacle_data["gap_height"]),
        spawn_interval_ms=float(obstacle_data["spawn_interval_ms"]),
        margin_top=float(obstacle_data.get("margin_top", 50)),
        margin_bottom=float(obstacle_data.get("margin_bottom", 50))
    )

    rewards_data = raw["rewards"]
    rewards = RewardConfig(
        coin_reward_base=float(rewards_data["coin_reward_base"]),
        xp_per_pass=int(rewards_data.get("xp_per_pass", 10))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_ticks=int(caps_data.get("max_ticks", 36000))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_obstacles=int(obs_data.get("max_obstacles", 8))
    )

    config = GameConfig(
        world=world,
        entity=entity,
        physics=physics,
        obstacles=obstacles,
        rewards=rewards,
        caps=caps,
        observation=observation
    )

    _validate_config(config)
    return config


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    return config_from_dict(raw)


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
