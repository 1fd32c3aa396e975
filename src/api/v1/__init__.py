"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.dynamic_groups import router as dynamic_groups_router
from api.v1.routes.dynamic_groups import types_router as dynamic_group_types_router
from api.v1.routes.groups import router as groups_router

router = APIRouter()
router.include_router(groups_router)
router.include_router(dynamic_groups_router)
router.include_router(dynamic_group_types_router)
