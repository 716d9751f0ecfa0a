"""
Error types raised by the simulation engine.
Both concrete errors subclass ValueError so callers that already guard
parameter problems with ``except ValueError`` keep working.
"""


class SimulationError(Exception):
    """Base class for simulation engine errors"""


class InvalidConfiguration(SimulationError, ValueError):
    """Raised before any simulation work when parameters are unusable"""


class InvalidInput(SimulationError, ValueError):
    """Raised when a statistics helper receives data it cannot summarize"""
