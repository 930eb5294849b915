"""Agent runtime, session buffer, tool registry and configuration for LLM-driven assistants."""

__version__ = "0.1.0"