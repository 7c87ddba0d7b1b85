"""FastAPI application entry point."""
from fastapi import FastAPI

from pulse.config import get_settings
from pulse.logging_config import configure_logging
from pulse.routers import coach, health, prescriptions
from pulse.services.query_analytics import QueryAnalytics


configure_logging()

app = FastAPI(title="Pulse Coach API")
app.state.query_analytics = QueryAnalytics(capacity=get_settings().analytics_capacity)


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(prescriptions.router)
app.include_router(coach.router)
