"""
Telemetry ingestion: request models, credential injection and the
staged upload pipeline.
"""
