"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.admin_tokens import router as admin_tokens_router
from api.v1.votes import router as votes_router

router = APIRouter()

router.include_router(votes_router, prefix="/votes", tags=["Votes"])
router.include_router(admin_tokens_router, prefix="/admin", tags=["Admin Tokens"])
