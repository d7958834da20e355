"""
LocalMarket Backend: Application Package
=========================================

Parcel delivery and local marketplace API.

Architecture:

    ┌─────────────────────────────────────┐
    │  Routes + authorization interceptor │  ← HTTP concerns, ROUTE_POLICY
    ├─────────────────────────────────────┤
    │  Services                           │  ← workflows, business rules
    ├─────────────────────────────────────┤
    │  Repositories + UnitOfWork          │  ← queries, one commit per workflow
    ├─────────────────────────────────────┤
    │  Models (SQLAlchemy) / Schemas      │  ← storage / API contract
    └─────────────────────────────────────┘

External adapters (identity provider, payment gateway, mail relay,
notification hub) sit beside the services and are injected per app.
"""

__version__ = "1.0.0"
