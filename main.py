import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.database import create_db_and_tables
from core.exceptions import AppError, AuthError, StoreUnavailableError
from routes.admin_tenants import router as admin_tenants_router
from routes.admin_users import router as admin_users_router
from routes.auth import router as auth_router
from routes.customers import router as customers_router
from routes.dashboard import router as dashboard_router
from routes.invoices import router as invoices_router
from routes.leads import router as leads_router
from routes.settings import router as settings_router
from routes.subscription import router as subscription_router
from services.auth_service import AuthStateListeners

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def log_auth_state(identity) -> None:
    if identity is None:
        logger.info("🔒 Session signed out")
    else:
        logger.info("🔓 Signed in: %s", identity.email)


# =========================================
# 🏁 Lifespan (DB initialization)
# =========================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    app.state.auth_listeners = AuthStateListeners()
    unsubscribe = app.state.auth_listeners.subscribe(log_auth_state)
    logger.info("✅ Ledgerly backend started (%s).", settings.ENVIRONMENT)
    yield
    unsubscribe()
    logger.info("✅ Application shutting down.")


# =========================================
#  ✅ FastAPI App
# =========================================
app = FastAPI(lifespan=lifespan, title="Ledgerly Backend", debug=settings.DEBUG and not settings.IS_PRODUCTION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================
# ⚠️ Error handling
# =========================================
@app.exception_handler(AppError)
def handle_app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        # Internal details stay in the log
        logger.error("❌ %s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        detail = exc.public_message
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        detail = exc.message

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    if isinstance(exc, StoreUnavailableError):
        headers = {"Retry-After": "5"}
    return JSONResponse(status_code=exc.status_code, content={"detail": detail}, headers=headers)


# =========================================
# 📦 Routers
# =========================================
app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
app.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(leads_router, prefix="/leads", tags=["Leads"])
app.include_router(invoices_router, prefix="/invoices", tags=["Invoices"])
app.include_router(customers_router, prefix="/customers", tags=["Customers"])
app.include_router(settings_router, prefix="/settings", tags=["Settings"])
app.include_router(subscription_router, prefix="/subscription", tags=["Subscription"])
app.include_router(admin_users_router, prefix="/admin/users", tags=["Users"])
app.include_router(admin_tenants_router, prefix="/admin/tenants", tags=["Tenants"])


# Serve the uploads directory (company logos) at /static
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.STATIC_URL, StaticFiles(directory=settings.UPLOAD_DIR), name="static")


# =========================================
# 🩺 Health Check
# =========================================
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "Backend is running"}


@app.get("/")
def read_root():
    return {"message": "Welcome to Ledgerly Backend!"}
