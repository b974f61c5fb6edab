"""Domain layer - entities and services for LinkAuth.

Services reach storage only through the StorageBackend contract, so any
backend can be plugged in at startup.
"""
