from fastapi import APIRouter
from app.api.v1.endpoints import auth, certificates, offer_letters, submissions, webhook

api_router = APIRouter()

api_router.include_router(offer_letters.router)
api_router.include_router(certificates.router)
api_router.include_router(submissions.router)
api_router.include_router(webhook.router)
api_router.include_router(auth.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "interndesk-backend"}
