"""
Pydantic request/response schemas. Kept separate from the ORM models so the
API contract controls exactly which fields leave the server.
"""
