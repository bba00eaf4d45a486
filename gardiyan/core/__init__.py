"""
Core proxy logic.

This module is framework-agnostic - it doesn't import FastAPI or boto3,
so key handling and error mapping can be tested in isolation.
"""
