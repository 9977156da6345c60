# prestamos/config.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

ENV = os.getenv("ENV", "dev").lower()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prestamos.db")
# 👇 Normaliza scheme si viene como 'postgres://'
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Zona horaria del negocio (las cuotas vencen por fecha local)
LOCAL_TZ_NAME = os.getenv("APP_TZ", "America/Panama")

# CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# Scheduler de cuotas vencidas
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "false").lower() == "true"
SCHED_HOUR = int(os.getenv("SCHED_HOUR", "2"))
SCHED_MINUTE = int(os.getenv("SCHED_MINUTE", "0"))

# Sugerencia de interés total al aprobar (12% del monto solicitado)
SUGGESTED_INTEREST_RATE = Decimal(os.getenv("SUGGESTED_INTEREST_RATE", "0.12"))
