# salesdesk/routers/debts.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from salesdesk.database import get_db
from salesdesk.core.auth import get_current_user
from salesdesk.models.debts import Debt, DebtStatus
from salesdesk.schemas.debt import DebtCreate, DebtResponse, DebtStatusUpdate

router = APIRouter(prefix="/debts", tags=["Debts"])


@router.post("", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
def create_debt(
    debt_data: DebtCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    debt = Debt(
        title=debt_data.title,
        amount=debt_data.amount,
        reason=debt_data.reason,
        issuer_id=current_user.id,
        status=DebtStatus.PENDING.value,
    )

    db.add(debt)
    db.commit()
    db.refresh(debt)

    return debt


@router.get("", response_model=list[DebtResponse])
def list_debts(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Debt).options(joinedload(Debt.issuer))

    # Agents only see the debts they issued
    if not current_user.is_admin:
        query = query.filter(Debt.issuer_id == current_user.id)

    return query.order_by(Debt.created_at.desc(), Debt.id.desc()).all()


@router.patch("/{debt_id}/status", response_model=DebtResponse)
def update_debt_status(
    debt_id: int,
    status_data: DebtStatusUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    debt = db.query(Debt).filter(Debt.id == debt_id).first()

    if not debt:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Debt not found",
        )

    if not current_user.is_admin and debt.issuer_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )

    if status_data.status == DebtStatus.REJECTED and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only an admin can reject a debt",
        )

    debt.status = status_data.status
    db.commit()
    db.refresh(debt)

    return debt
