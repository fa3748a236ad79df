"""API v1 router aggregation"""
from fastapi import APIRouter

from mower_manager.api.v1 import fleet, attachments, backup, events

api_router = APIRouter()

api_router.include_router(fleet.router)
api_router.include_router(attachments.router)
api_router.include_router(backup.router)
api_router.include_router(events.router)
