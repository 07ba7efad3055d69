"""Top-level API router — one sub-router per datastore."""

from fastapi import APIRouter

from dualstore.presentation.api.endpoints.products import router as products_router
from dualstore.presentation.api.endpoints.users import router as users_router

router = APIRouter(prefix="/api")
router.include_router(users_router)
router.include_router(products_router)
