"""BGRunner: run a command with its window hidden and keep its output."""

__version__ = "1.0.0"
