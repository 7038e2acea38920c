from fastapi import APIRouter, Depends, HTTPException, status
from app.schemas import TitleRequest, TitleResponse
from app.services.resolve import TitleResolver, get_resolver, get_cache_stats
from app.core.errors import InvalidInput, PersistenceFailure

router = APIRouter()

def validate_url(url: str) -> str:
    if not url:
        raise InvalidInput("URL is required")
    if not url.startswith(("http://", "https://")):
        raise InvalidInput("URL must start with http:// or https://")
    return url

@router.post("/title", response_model=TitleResponse)
async def resolve_title(request: TitleRequest, resolver: TitleResolver = Depends(get_resolver)):
    """
    Resolve the real page title for a link.

    Returns a null title when none could be found; failures never surface
    as errors here, only malformed input does.
    """
    try:
        url = validate_url(request.url)
    except InvalidInput as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    resolution = await resolver.resolve(url, request.lang)
    return TitleResponse(url=url, title=resolution.title, cached=resolution.cached)

@router.get("/cache/stats")
async def cache_statistics():
    """Get cache statistics for debugging"""
    return get_cache_stats()

@router.delete("/cache/clear")
async def clear_cache():
    """Clear all cache entries"""
    try:
        from app.cache.db import clear_all
        clear_all()
        return {"message": "Cache cleared successfully"}
    except PersistenceFailure as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to clear cache: {str(e)}"
        )

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Search Title Resolver"}
