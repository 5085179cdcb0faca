# Schemas package init
"""
Pydantic request/response models, one module per resource.

Schemas are separate from SQLAlchemy models so the API controls exactly what
leaves the server: no response schema has a password field, and nested
author summaries drop email (and, for comment authors, full name).
"""
