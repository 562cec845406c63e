"""Infrastructure layer — database engine and the entity repository.

This layer depends on stdlib and third-party libs (SQLAlchemy, pydantic).
It must never import from services, config, or output.
"""
