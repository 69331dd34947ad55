"""
Pydantic request/response schemas: the API contract.

Field names on the wire are camelCase (`reportName`, `createdAt`, `_id`);
Python attributes are snake_case with aliases. Response models are
serialized by alias, which FastAPI does by default.
"""
