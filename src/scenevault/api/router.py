from fastapi import APIRouter

from src.scenevault.api.routes import auth, projects

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(projects.router)
