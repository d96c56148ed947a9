"""Combat timeline engine for a tabletop battle map editor."""

__version__ = "0.1.0"
