"""Role-based inventory dashboard for a multi-division organization.

The FastAPI application lives in :mod:`app.main`; data comes from an external
backend through the adapters in :mod:`app.backend`.
"""
