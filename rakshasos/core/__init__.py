"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured JSON / pretty logging
    errors          — exception hierarchy
    storage         — durable key-value storage (Redis)
    health          — component status aggregation
"""
