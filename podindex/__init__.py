"""podindex: identity, result assembly and incremental sync for a podcast feed directory."""

__version__ = "0.1.0"
