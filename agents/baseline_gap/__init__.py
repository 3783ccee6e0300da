"""
Baseline Gap Agent Package

A simple heuristic autopilot that keeps the entity inside the next gap.
Serves as a benchmark and example.
"""

from .agent import FlightAgent, create_agent

__all__ = ["FlightAgent", "create_agent"]
