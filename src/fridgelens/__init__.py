"""
Fridgelens recipe evaluation package.

The package exposes the ingredient detection and recipe generation adapters, the evaluation
store used to record human ratings of AI output, and the ASGI application tying them together.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
