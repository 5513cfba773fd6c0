"""
Telemetry MinIO Service - stores device telemetry payloads in MinIO.

This package contains the complete application:
- core: Request models, credential injection, staged upload
- infrastructure: Secret store and object store integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
