"""
Module: utils
Description: Package initialization for utility functions.

This package contains shared helpers used throughout the queue client:
- logger: Structured logging configuration and helpers
- batch_helpers: Chunking and reassembly for batched calls
- serialization: Payload validation and JSON wire encoding
- retry: Opt-in retry policy for transient backend failures
"""

__all__ = []
