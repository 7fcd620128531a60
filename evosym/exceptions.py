"""
Exception hierarchy for the simulation engine.

Shape and construction errors are raised eagerly and propagate to the
caller. Missing environment, mates, food or survivors are ordinary
simulation states and never raise.
"""


class EvoSymError(Exception):
    """Base for all evosym exceptions."""

    pass


class ShapeMismatchError(EvoSymError, ValueError):
    """Input width does not match a neuron, layer or network."""

    pass


class IndexOutOfRangeError(EvoSymError, IndexError):
    """Invalid layer, neuron or weight index."""

    pass


class DegenerateNetworkError(EvoSymError, ValueError):
    """Network cannot be built from the given architecture or serialized data."""

    pass


class NoForwardPassError(EvoSymError, RuntimeError):
    """Introspection requested before any forward pass was run."""

    pass


class PersistenceError(EvoSymError):
    """Save file is unreadable, of an unsupported version, or corrupted."""

    pass
