"""tripbench: scenario modification, deterministic simulation runs and challenge scoring."""

__version__ = "0.1.0"
