"""Loaders for marketplace scenarios."""

from .scenario_loader import ScenarioLoader

__all__ = ["ScenarioLoader"]
