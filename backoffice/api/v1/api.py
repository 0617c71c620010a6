"""
V1 API router aggregation.

All versioned endpoint routers are mounted here under a common prefix.
The top-level ``main.py`` mounts this router at ``/api/v1``.
"""

from fastapi import APIRouter

from backoffice.api.v1.endpoints import (
    capital_calls,
    check_ins,
    companies,
    funds,
    investments,
    limited_partners,
    nav,
    tasks,
    updates,
)

api_router = APIRouter()

api_router.include_router(funds.router, prefix="/funds", tags=["Funds"])
api_router.include_router(companies.router, prefix="/companies", tags=["Portfolio Companies"])
api_router.include_router(investments.router, prefix="/investments", tags=["Investments"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])

# These routers declare full paths (/funds/{fund_id}/capital-calls,
# /capital-calls/{call_id}, ...) because their resources are addressed both
# under a parent and on their own, so they are mounted without a prefix.
api_router.include_router(limited_partners.router, tags=["Limited Partners"])
api_router.include_router(capital_calls.router, tags=["Capital Calls"])
api_router.include_router(nav.router, tags=["NAV"])
api_router.include_router(updates.router, tags=["Company Updates"])
api_router.include_router(check_ins.router, tags=["Check-ins"])
