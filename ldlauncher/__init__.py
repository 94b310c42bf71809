"""LD Launcher: discovery and selection of installed Paradigm versions."""

__version__ = "0.1.0"
