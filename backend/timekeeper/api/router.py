from fastapi import APIRouter

from timekeeper.api.access import access_router
from timekeeper.api.employees import employees_router
from timekeeper.api.pay_periods import pay_periods_router
from timekeeper.api.reports import reports_router
from timekeeper.api.time_entries import time_entries_router

api_router = APIRouter()
api_router.include_router(time_entries_router)
api_router.include_router(pay_periods_router)
api_router.include_router(access_router)
api_router.include_router(employees_router)
api_router.include_router(reports_router)
