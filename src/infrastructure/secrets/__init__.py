"""
Secret store integration for object store credentials.

Reads secrets mounted on disk, with an in-memory mock for development.
"""
