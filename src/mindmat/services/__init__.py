"""Service layer — operations returning ServiceResult.

Services may import from domain, config, and engine.
They must never import from commands or output.
"""
