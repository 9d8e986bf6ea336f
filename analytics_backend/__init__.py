"""
Tiered Analytics Backend Package.

FastAPI service layer for the content automation analytics engine.
Answers analytical queries over discovered topics, generated prompts and
published media, reading from either the hot store or the archive store.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, dependencies and exceptions
    - models: Pydantic schemas and enums
    - services: Routing, gathering, aggregation, insights, cost and report assembly
    - sql: Parameterized hot-store queries and archive filter expressions
"""

__version__ = "1.0.0"
