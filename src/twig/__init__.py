"""twig: a terminal task tracker with hierarchical tasks and time tracking."""

__version__ = "0.3.0"
