"""FastAPI application entry point."""

from fastapi import FastAPI

from grind_analyzer.api.routes import router

app = FastAPI(
    title="Grind Analysis API",
    description="API for measuring the particle-size distribution of ground coffee from photos",
    version="0.1.0",
)

# Include API routes
app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service information."""
    return {"service": "grind-analyzer", "docs": "/docs", "api": "/api/v1"}
