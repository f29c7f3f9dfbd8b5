"""
Control Layer - Execution.

Main control loop that coordinates all other layers.
"""

from .controller import Controller

__all__ = ["Controller"]
