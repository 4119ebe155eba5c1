"""Knowledge acquisition - plan, approve, execute and condense tool results for chat."""

__version__ = "0.1.0"
