"""svxstream: Darkice + Icecast2 streaming setup for SvxLink repeaters."""

__version__ = "0.1.0"
