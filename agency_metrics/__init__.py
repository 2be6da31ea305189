"""
Agency Metrics Backend Package.

FastAPI service for the agency dashboard's metrics engine: KPI series over
date ranges, percentage-of-total breakdowns, previous-period comparison and
anomaly alerting.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Metrics engine services
    - jobs: Slack alert notifications
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
