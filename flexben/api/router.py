from fastapi import APIRouter

from flexben.api.claims import claims_router
from flexben.api.employees import employees_router
from flexben.api.payroll_events import payroll_events_router
from flexben.api.periods import periods_router
from flexben.api.reports import reports_router
from flexben.api.settlements import settlements_router

api_router = APIRouter()
api_router.include_router(periods_router)
api_router.include_router(claims_router)
api_router.include_router(settlements_router)
api_router.include_router(payroll_events_router)
api_router.include_router(employees_router)
api_router.include_router(reports_router)
