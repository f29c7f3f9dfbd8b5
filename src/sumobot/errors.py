"""
Hardware fault types.

SensorFault is absorbed by perception (the reading degrades to a safe
default). ActuatorFault ends the match: the controller stops all motion
and re-raises.
"""


class SensorFault(RuntimeError):
    """A sensor returned no reading or an implausible one."""


class ActuatorFault(RuntimeError):
    """The drive board rejected a command or is unavailable."""
