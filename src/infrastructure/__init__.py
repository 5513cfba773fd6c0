"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- secrets: Credential secrets mounted on disk
- storage: Object storage (MinIO/S3)
"""
