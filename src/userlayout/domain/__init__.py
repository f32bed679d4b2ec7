"""Domain layer — node ids, descriptions, the layout tree, and its rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, plugins, commands, or config.
"""
