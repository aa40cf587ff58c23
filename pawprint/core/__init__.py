"""
Core utilities shared across the Pawprint API.

This package hosts configuration, the password hasher and the error
taxonomy used by services and routers. Nothing in here imports FastAPI
routers or the storage layer.
"""
