"""ReasonChat: multi-provider streaming chat backend with reasoning channels."""

__version__ = "0.1.0"
