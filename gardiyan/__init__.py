"""
Gardiyan - a read-only HTTP proxy in front of an S3-compatible bucket.

This package contains the complete application:
- core: Framework-agnostic proxy logic (keys, content types, failures)
- infrastructure: Object storage clients
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
