from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from prestamos.database.db import get_db
from prestamos.models.models import Company
from prestamos.schemas.companies import Company as CompanySchema, CompanyCreate, CompanyUpdate

router = APIRouter()


def _clean_name(raw: str) -> str:
    name = (raw or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="El nombre de la empresa es obligatorio")
    return name


def _assert_name_free(db: Session, name: str, exclude_id: int | None = None) -> None:
    q = db.query(Company).filter(Company.name == name)
    if exclude_id is not None:
        q = q.filter(Company.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=409, detail="Ya existe una empresa con ese nombre")


@router.get("/", response_model=list[CompanySchema])
def list_companies(db: Session = Depends(get_db)):
    return db.query(Company).order_by(Company.name.asc()).all()


@router.post("/", response_model=CompanySchema, status_code=status.HTTP_201_CREATED)
def create_company(body: CompanyCreate, db: Session = Depends(get_db)):
    name = _clean_name(body.name)
    _assert_name_free(db, name)
    row = Company(name=name)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.get("/{company_id}", response_model=CompanySchema)
def get_company(company_id: int, db: Session = Depends(get_db)):
    row = db.get(Company, company_id)
    if not row:
        raise HTTPException(status_code=404, detail="Empresa no encontrada")
    return row


@router.put("/{company_id}", response_model=CompanySchema)
def rename_company(company_id: int, body: CompanyUpdate, db: Session = Depends(get_db)):
    row = db.get(Company, company_id)
    if not row:
        raise HTTPException(status_code=404, detail="Empresa no encontrada")
    name = _clean_name(body.name)
    _assert_name_free(db, name, exclude_id=company_id)
    row.name = name
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{company_id}", status_code=200)
def delete_company(company_id: int, db: Session = Depends(get_db)):
    row = db.get(Company, company_id)
    if not row:
        raise HTTPException(status_code=404, detail="Empresa no encontrada")
    # Los clientes quedan sin empresa (ON DELETE SET NULL)
    for customer in row.customers:
        customer.company_id = None
    db.delete(row)
    db.commit()
    return {"message": "Empresa eliminada", "company_id": company_id}
