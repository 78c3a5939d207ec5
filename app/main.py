import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.errors import validation_body
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.projects import routes as projects_routes
from app.modules.checklists import routes as checklists_routes
from app.modules.inspections import routes as inspections_routes
from app.modules.approvals import routes as approvals_routes
from app.modules.evidence import routes as evidence_routes
from app.modules.escalations import routes as escalations_routes
from app.modules.notifications import routes as notifications_routes
from app.modules.audit import routes as audit_routes
from app.modules.reports import routes as reports_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=validation_body(exc.errors()))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(users_routes.router, prefix="/api/v1")
app.include_router(projects_routes.router, prefix="/api/v1")
app.include_router(checklists_routes.router, prefix="/api/v1")
app.include_router(inspections_routes.router, prefix="/api/v1")
app.include_router(approvals_routes.router, prefix="/api/v1")
app.include_router(approvals_routes.inspection_router, prefix="/api/v1")
app.include_router(evidence_routes.router, prefix="/api/v1")
app.include_router(evidence_routes.inspection_router, prefix="/api/v1")
app.include_router(escalations_routes.router, prefix="/api/v1")
app.include_router(notifications_routes.router, prefix="/api/v1")
app.include_router(audit_routes.router, prefix="/api/v1")
app.include_router(reports_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    if not settings.supabase_url:
        logger.warning("SUPABASE_URL is not set; database calls will fail")
    logger.info("Evidence storage: %s", "S3" if settings.s3_configured else f"Supabase bucket {settings.evidence_bucket}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to primoinspect-backend", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe."""
    return {"status": "ready"}
