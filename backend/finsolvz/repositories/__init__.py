"""
MongoDB persistence adapters, one per collection.

Repositories own the raw (reference-only) document shape. They translate
driver failures into DatabaseError, missing documents into the entity's
*_NOT_FOUND error and unique-index violations into the entity's conflict
error. Only `report_assembler` materializes cross-collection joins.
"""
