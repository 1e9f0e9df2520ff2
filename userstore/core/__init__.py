"""
Core utilities shared across the userstore service.

This package hosts configuration, logging setup, the error hierarchy and the
read/write lock used by the record store. Nothing here imports FastAPI or the
storage layer.
"""
