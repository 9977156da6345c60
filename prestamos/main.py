import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from prestamos import config
from prestamos.routes import companies, dashboard, loan_requests, loans, payments, tasks
from prestamos.services.amortization import AmortizationError

# -----------------------------------------------------------------------------
# Logging base
# -----------------------------------------------------------------------------
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("uvicorn.error")

# -----------------------------------------------------------------------------
# Lifespan: scheduler opcional para marcar cuotas vencidas
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Si ENABLE_SCHEDULER=true, inicia APScheduler al levantar
    y lo detiene al apagar.
    """
    scheduler = None

    if config.ENABLE_SCHEDULER:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from apscheduler.triggers.cron import CronTrigger
        from prestamos.jobs.overdue import mark_overdue_installments_job
        from prestamos.utils.time_windows import LOCAL_TZ

        scheduler = AsyncIOScheduler(timezone=LOCAL_TZ)
        scheduler.add_job(
            mark_overdue_installments_job,
            CronTrigger(hour=config.SCHED_HOUR, minute=config.SCHED_MINUTE, timezone=LOCAL_TZ),
            id="mark-overdue-daily",
            replace_existing=True,
            max_instances=1,     # evita superposiciones
            coalesce=True,       # si se salteó por caída, ejecuta una sola
            misfire_grace_time=3600,
        )
        scheduler.start()
        logger.info("✅ Scheduler iniciado: %02d:%02d TZ=%s",
                    config.SCHED_HOUR, config.SCHED_MINUTE, config.LOCAL_TZ_NAME)

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)
            logger.info("🛑 Scheduler detenido")

# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
app = FastAPI(title="Préstamos quincenales", lifespan=lifespan)

# -----------------------------------------------------------------------------
# CORS por entorno
# -----------------------------------------------------------------------------
ALLOWED_ORIGINS = list(config.CORS_ORIGINS)

if config.ENV == "prod":
    if any(o == "*" for o in ALLOWED_ORIGINS):
        raise RuntimeError('En prod, CORS_ORIGINS no puede contener "*". Definí dominios explícitos.')
    if not ALLOWED_ORIGINS:
        logger.warning("⚠️  CORS_ORIGINS vacío en prod: solo clientes del mismo origen.")
elif not ALLOWED_ORIGINS:
    ALLOWED_ORIGINS = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)

# -----------------------------------------------------------------------------
# Handlers y health
# -----------------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error("422 detail: %s", exc.errors())
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(AmortizationError)
async def amortization_exception_handler(request: Request, exc: AmortizationError):
    # Cualquier error del motor de amortización que no se haya atrapado en la ruta
    logger.warning("Amortización rechazada en %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"ok": True}

@app.get("/healthz")
def healthz():
    return {"ok": True}

# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------
app.include_router(companies.router,      prefix="/companies",     tags=["Companies"])
app.include_router(loan_requests.router,  prefix="/loan-requests", tags=["Loan requests"])
app.include_router(loans.router,          prefix="/loans",         tags=["Loans"])
app.include_router(payments.router,       prefix="/payments",      tags=["Payments"])
app.include_router(dashboard.router)
app.include_router(tasks.router)
