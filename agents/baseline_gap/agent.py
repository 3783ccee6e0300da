"""
Baseline Gap Agent - Jumps whenever the entity sinks toward the gap floor.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark for agents to compare against
3. A verification that the environment API works correctly

Strategy:
- Read next_gap_top (the gap of the first obstacle not yet behind the entity)
- Compute a trigger line a little above the bottom of that gap
- Trigger when the entity's bottom edge is below the line and falling
"""

from typing import Any, Dict

# Pixels kept between the entity and the bottom of the gap
SAFETY_MARGIN = 25.0


class FlightAgent:
    """
    Simple baseline agent that hovers just above the next gap's floor.

    A jump lifts the entity by roughly 60 pixels with default tunables, so
    triggering near the gap floor keeps it clear of the gap ceiling too.
    """

    def __init__(self, margin: float = SAFETY_MARGIN, debug: bool = False):
        """
        Initialize the agent.

        Args:
            margin: Distance above the gap floor that triggers a jump.
            debug: If True, print decisions to stdout.
        """
        self.margin = margin
        self.debug = debug

    def reset(self) -> None:
        """Reset agent state for a new episode (stateless)."""

    def act(self, observation: Dict[str, Any]) -> int:
        """
        Decide whether to trigger this tick.

        Args:
            observation: Dict of numpy arrays from the environment.

        Returns:
            1 to trigger a jump, 0 to do nothing.
        """
        entity_y = float(observation["entity_y"])
        entity_size = float(observation["entity_size"])
        velocity = float(observation["entity_velocity"])
        gap_top = float(observation["next_gap_top"])
        gap_height = float(observation["gap_height"])

        trigger_line = gap_top + gap_height - self.margin
        entity_bottom = entity_y + entity_size

        action = 1 if entity_bottom > trigger_line and velocity >= 0 else 0

        if self.debug:
            print(f"y={entity_y:.1f} v={velocity:.2f} line={trigger_line:.1f} -> {action}")

        return action


def create_agent(**kwargs) -> FlightAgent:
    """Factory for the evaluation harness and notebooks."""
    return FlightAgent(**kwargs)
