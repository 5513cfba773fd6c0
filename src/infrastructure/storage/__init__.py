"""
Object storage integration for telemetry uploads.

Supports MinIO and other S3-compatible stores via boto3.
Includes mock mode for local development without a running store.
"""
