from fastapi import APIRouter
from contractor_api.api.endpoints import contact

api_router = APIRouter(prefix="/api")

api_router.include_router(contact.router, tags=["Contact"])
