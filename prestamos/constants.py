# prestamos/constants.py
from enum import Enum

# ==============================
# Solicitudes
# ==============================
class LoanRequestStatus(str, Enum):
    NEW      = "new"          # Nueva
    APPROVED = "approved"     # Aprobada
    REJECTED = "rejected"     # Rechazada

# ==============================
# Préstamos
# ==============================
class LoanStatus(str, Enum):
    ACTIVE    = "active"      # Activa
    COMPLETED = "completed"   # Completada
    LATE      = "late"        # Atrasada (calculado: cuota pendiente vencida)
    REJECTED  = "rejected"    # Rechazada

# ==============================
# Cuotas quincenales (tabla de amortización)
# ==============================
class InstallmentStatus(str, Enum):
    PENDING = "pending"       # Pendiente
    PAID    = "paid"          # Pagada
    OVERDUE = "overdue"       # Atrasada

# ==============================
# Normalización de entradas “legacy”
# (ES y variantes → EN canónico)
# ==============================
NORMALIZE_LOAN_REQUEST_STATUS = {
    "new":       LoanRequestStatus.NEW,
    "nueva":     LoanRequestStatus.NEW,
    "approved":  LoanRequestStatus.APPROVED,
    "aprobada":  LoanRequestStatus.APPROVED,
    "rejected":  LoanRequestStatus.REJECTED,
    "rechazada": LoanRequestStatus.REJECTED,
    "declined":  LoanRequestStatus.REJECTED,
}

NORMALIZE_LOAN_STATUS = {
    # EN canónico
    "active":     LoanStatus.ACTIVE,
    "completed":  LoanStatus.COMPLETED,
    "late":       LoanStatus.LATE,
    "rejected":   LoanStatus.REJECTED,

    # ES legacy
    "activa":     LoanStatus.ACTIVE,
    "activo":     LoanStatus.ACTIVE,
    "completada": LoanStatus.COMPLETED,
    "pagado":     LoanStatus.COMPLETED,
    "atrasada":   LoanStatus.LATE,
    "en mora":    LoanStatus.LATE,
    "rechazada":  LoanStatus.REJECTED,
}

NORMALIZE_INSTALLMENT_STATUS = {
    "pending":   InstallmentStatus.PENDING,
    "pendiente": InstallmentStatus.PENDING,
    "paid":      InstallmentStatus.PAID,
    "pagada":    InstallmentStatus.PAID,
    "pagado":    InstallmentStatus.PAID,
    "overdue":   InstallmentStatus.OVERDUE,
    "atrasada":  InstallmentStatus.OVERDUE,
    "vencida":   InstallmentStatus.OVERDUE,
}

# Estados de cuota que siguen impagos
UNPAID_INSTALLMENT_STATUSES = (InstallmentStatus.PENDING.value, InstallmentStatus.OVERDUE.value)
