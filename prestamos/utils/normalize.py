# prestamos/utils/normalize.py
from typing import Optional
from prestamos.constants import (
    NORMALIZE_INSTALLMENT_STATUS, NORMALIZE_LOAN_REQUEST_STATUS, NORMALIZE_LOAN_STATUS,
    InstallmentStatus, LoanRequestStatus, LoanStatus,
)

def norm_installment_status(raw: Optional[str]) -> Optional[InstallmentStatus]:
    if not raw:
        return None
    return NORMALIZE_INSTALLMENT_STATUS.get(raw.strip().lower())

def norm_loan_status(raw: Optional[str]) -> Optional[LoanStatus]:
    if not raw:
        return None
    return NORMALIZE_LOAN_STATUS.get(raw.strip().lower())

def norm_loan_request_status(raw: Optional[str]) -> Optional[LoanRequestStatus]:
    if not raw:
        return None
    return NORMALIZE_LOAN_REQUEST_STATUS.get(raw.strip().lower())
