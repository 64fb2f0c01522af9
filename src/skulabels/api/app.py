from fastapi import FastAPI

from skulabels import __version__
from skulabels.api.routers import extraction
from skulabels.config import settings


app = FastAPI(
    title=settings.app_name,
    description="Extract SKU and barcode label records from logistics documents",
    version=__version__,
)

app.include_router(extraction.router, prefix="/api/v1/extraction", tags=["extraction"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}
