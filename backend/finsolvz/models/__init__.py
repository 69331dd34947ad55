"""
Stored document models.

These pydantic models mirror the raw MongoDB documents (ObjectId references,
camelCase field names). API-facing shapes live in `finsolvz.schemas`.
"""
