"""API router for /api endpoints."""

from fastapi import APIRouter

from copilot.api import chat, companies, insights

router = APIRouter()

# Grounded portfolio chat
router.include_router(chat.router, prefix="/chat", tags=["chat"])

# Company list and detail for the dashboard
router.include_router(companies.router, prefix="/companies", tags=["companies"])

# Chart aggregations
router.include_router(insights.router, prefix="/insights", tags=["insights"])
