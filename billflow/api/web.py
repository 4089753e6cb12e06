from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
from pathlib import Path

from billflow.core.config import settings

router = APIRouter()

# Browsers revalidate after an hour
CACHE_HEADERS = {"Cache-Control": "public, max-age=3600"}

def static_root() -> Path:
    return Path(settings.STATIC_DIR).resolve()

@router.get("/{full_path:path}", include_in_schema=False)
async def frontend(full_path: str):
    """Serve a static asset, falling back to index.html for client-side routes."""
    if full_path.startswith(settings.API_PREFIX.strip("/") + "/"):
        raise HTTPException(status_code=404, detail="Not Found")

    root = static_root()
    candidate = (root / full_path).resolve()
    if full_path and candidate.is_file() and root in candidate.parents:
        return FileResponse(candidate, headers=CACHE_HEADERS)

    index = root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Frontend not installed")
    return FileResponse(index)
