"""relbot: cut a release from a chat exchange."""

__version__ = "0.1.0"
