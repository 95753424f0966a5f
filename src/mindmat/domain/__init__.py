"""Domain layer — node types, ordering rules, and state snapshots.

This layer depends only on stdlib and pydantic.
It must never import from engine, services, commands, or config.
"""
