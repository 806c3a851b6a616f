from fastapi import FastAPI, Request, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from eventhub.api.v1.routes import (
    auth as auth_router,
    events as events_router,
    rsvps as rsvps_router,
    users as users_router,
    health as health_router,
)
from eventhub.cache.redis_client import cache
from eventhub.core.config import settings
from eventhub.core.exceptions import DomainError, UnauthenticatedError
from eventhub.core.logging import logger
from eventhub.core.rate_limit import limiter
from eventhub.db.session import engine, Base
from eventhub.views import routes as views_router
from eventhub.views.templating import render
import eventhub.db.models  # noqa: F401  registers the tables on Base.metadata

API_PREFIX = "/api/v1"

app = FastAPI(title=settings.APP_NAME)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix=API_PREFIX)
api_router.include_router(auth_router.router)
api_router.include_router(events_router.router)
api_router.include_router(rsvps_router.router)
api_router.include_router(users_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)
app.include_router(views_router.router)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """
    JSON for API calls; for pages, a redirect to the login form when a
    session is required, otherwise the error page.
    """
    if request.url.path.startswith(API_PREFIX):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )
    if isinstance(exc, UnauthenticatedError):
        return RedirectResponse(views_router.LOGIN_URL, status_code=303)
    return render(
        request,
        "error.html",
        status_code=exc.status_code,
        message=exc.message,
        title="Something went wrong" if exc.status_code >= 500 else exc.message,
    )


@app.on_event("startup")
async def on_startup():
    # create tables (simple approach; alembic/ holds the same schema as a revision)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()
    cache.close()
