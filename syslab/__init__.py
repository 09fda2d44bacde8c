"""V6 disk image reader, typed string list and ARM simulator shell."""

__version__ = "0.1.0"