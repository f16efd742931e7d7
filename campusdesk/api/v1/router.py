from fastapi import APIRouter
from campusdesk.api.v1.endpoints import auth, analytics, library, college

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "campusdesk-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
api_router.include_router(library.router, prefix="/library", tags=["Library"])
api_router.include_router(college.router, tags=["College Records"])
