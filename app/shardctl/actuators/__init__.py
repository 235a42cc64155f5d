"""Package manager actuators.

This module provides the abstract actuator interface and its Homebrew
implementation.
"""

from shardctl.actuators.base import Actuator
from shardctl.actuators.homebrew import HomebrewActuator

__all__ = ["Actuator", "HomebrewActuator"]
