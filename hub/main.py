"""
Main FastAPI application entry point.
Hub - HR & Engagement Portal
"""
import logging
from pathlib import Path
from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import RedirectResponse

from hub.config import HOST, LOG_LEVEL, PORT, RELOAD
from hub.database import init_database
from hub.templates_config import templates
from hub.routes import (
    auth_routes, dashboard_routes, admin_routes, company_routes,
    manager_routes, employee_routes, settings_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Hub",
    description="Role-based HR & engagement portal: surveys, KPIs, requests, rewards and achievements",
    version="1.0.0"
)

# Setup static files
BASE_DIR = Path(__file__).resolve().parent
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    init_database()
    logger.info("Database ready")


# Root redirect
@app.get("/")
async def root():
    return RedirectResponse(url="/login", status_code=302)


# Include route modules
app.include_router(auth_routes.router, tags=["Authentication"])
app.include_router(dashboard_routes.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(admin_routes.router, prefix="/admin", tags=["Admin"])
app.include_router(company_routes.router, prefix="/company", tags=["Company"])
app.include_router(manager_routes.router, prefix="/manager", tags=["Manager"])
app.include_router(employee_routes.router, prefix="/employee", tags=["Employee"])
app.include_router(settings_routes.router, tags=["Settings"])


# Error handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return templates.TemplateResponse(
        "error.html",
        {"request": request, "error_code": 404, "error_message": "Page not found"},
        status_code=404
    )


@app.exception_handler(500)
async def server_error_handler(request: Request, exc):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return templates.TemplateResponse(
        "error.html",
        {"request": request, "error_code": 500, "error_message": "Internal server error"},
        status_code=500
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hub.main:app", host=HOST, port=PORT, reload=RELOAD)
