class SchedulingError(Exception):
    """Base class for auto-scheduling failures."""


class DiscoveryError(SchedulingError):
    """A customer or availability listing query failed. Fatal to the run."""


class WriteError(SchedulingError):
    """The store rejected an appointment write. The engine skips the slot."""
