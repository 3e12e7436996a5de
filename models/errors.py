"""Error types raised for caller defects (bad configuration, not bad data)."""


class InvalidConfiguration(ValueError):
    """A layout, canvas or sizing parameter is outside its valid range."""
