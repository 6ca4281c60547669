# lead_intake/routes/__init__.py
"""
API route handlers organized by domain.
"""

from lead_intake.routes.health import router as health_router
from lead_intake.routes.leads import router as leads_router
from lead_intake.routes.optout import router as optout_router

__all__ = [
    "health_router",
    "leads_router",
    "optout_router",
]
