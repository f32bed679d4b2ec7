"""Infrastructure layer — layout store, XML event streams, tagged cache.

This layer depends on the domain layer, stdlib and third-party libs
(SQLAlchemy). It must never import from services, commands, or output.
"""
