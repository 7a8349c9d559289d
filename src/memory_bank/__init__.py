"""Memory Bank - retrieval-augmented project memory for LLM agents."""

__version__ = "1.0.0"
