"""
Decision Layer - What to do.

Contains:
- StanceMachine: stance selection and body dispatch
- decide / Transition: the pure priority rules
"""

from .state_machine import StanceMachine, Transition, decide

__all__ = ["StanceMachine", "Transition", "decide"]
