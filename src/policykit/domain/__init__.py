"""Domain layer — value objects, classification, policies, and query specs.

This layer depends only on stdlib and pydantic and never imports services
or infrastructure. Config section models appear only as type annotations
of the ``from_config``/``build_rule`` factories; they are not imported at
runtime.
"""
