"""
Infrastructure layer - external service integrations.

- storage: Object storage (AWS S3 and S3-compatible stores)
"""
