from fastapi import APIRouter

from app.api.routes.admin import router as admin_router
from app.api.routes.auth import router as auth_router
from app.api.routes.interviews import router as interviews_router
from app.api.routes.knowledge import router as knowledge_router
from app.api.routes.personas import router as personas_router
from app.api.routes.qa import router as qa_router
from app.api.routes.topics import router as topics_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(interviews_router)
api_router.include_router(knowledge_router)
api_router.include_router(personas_router)
api_router.include_router(topics_router)
api_router.include_router(qa_router)
