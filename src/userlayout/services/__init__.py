"""Service layer — the layout manager and the ServiceResult facade over it.

Services may import from domain, infrastructure and plugins.
They must never import from commands or output.
"""
