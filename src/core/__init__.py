"""
Core ingestion logic.

Route-independent: nothing here imports FastAPI. Secret and object
store access go through the Protocols in the infrastructure layer, so
tests can hand in in-memory fakes.
"""
