"""Event-based attribution analytics backend.

The attribution pipeline lives in ``attribution_backend.services``; the
FastAPI app in ``attribution_backend.main``.
"""

__all__: list[str] = []
