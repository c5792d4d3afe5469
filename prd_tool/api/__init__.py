"""API router for v1 endpoints."""

from fastapi import APIRouter

from prd_tool.api import chat, versions

router = APIRouter()

# Chat turns and PRD update suggestions
router.include_router(chat.router, tags=["chat"])

# Version snapshots, restore and compare
router.include_router(versions.router, tags=["versions"])
