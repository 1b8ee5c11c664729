from fastapi import APIRouter

from policy_aligner.routers import analysis, auth, documents, insights, mappings, reports, tags

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(documents.router)
api_router.include_router(mappings.router)
api_router.include_router(analysis.router)
api_router.include_router(reports.router)
api_router.include_router(tags.router)
api_router.include_router(insights.router)

__all__ = ["api_router"]
