from fastapi import APIRouter, Depends

from app.features.admin.routes.dashboard import router as dashboard_router
from app.features.admin.routes.review import router as review_router
from app.features.admin.utils.auth import get_current_admin

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_current_admin)])

router.include_router(review_router)
router.include_router(dashboard_router)
