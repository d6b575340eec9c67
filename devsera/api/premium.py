"""Premium plans, membership requests and members-only content."""
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlmodel import Session, select

from devsera.api.deps import get_current_user
from devsera.core import storage
from devsera.core.database import get_db
from devsera.models import PremiumContent, PremiumMembership, Profile
from devsera.models.premium import PREMIUM_PLANS
from devsera.services.premium import active_membership, is_premium
from devsera.services.uploads import validate_image

router = APIRouter(prefix="/premium", tags=["premium"])


def membership_dict(m: PremiumMembership) -> dict:
    return {
        "id": m.id,
        "plan_type": m.plan_type,
        "price_paid": m.price_paid,
        "payment_method": m.payment_method,
        "transaction_id": m.transaction_id,
        "payment_proof_url": m.payment_proof_url,
        "status": m.status,
        "requested_at": m.requested_at.isoformat() if m.requested_at else None,
        "approved_at": m.approved_at.isoformat() if m.approved_at else None,
        "expires_at": m.expires_at.isoformat() if m.expires_at else None,
        "rejection_reason": m.rejection_reason,
        "notes": m.notes,
    }


@router.get("/plans")
def plans():
    return [
        {"plan_type": key, "name": name, "price": price, "duration_days": days}
        for key, (name, price, days) in PREMIUM_PLANS.items()
    ]


@router.post("/request")
async def request_membership(
    plan_type: str = Form(...),
    payment_method: str = Form(""),
    transaction_id: str | None = Form(None),
    payment_proof: UploadFile | None = File(None),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    plan = PREMIUM_PLANS.get(plan_type)
    if not plan:
        raise HTTPException(status_code=422, detail="Unknown premium plan.")
    if is_premium(db, user.id):
        raise HTTPException(status_code=409, detail="You already have an active premium membership.")
    pending = db.exec(
        select(PremiumMembership)
        .where(PremiumMembership.user_id == user.id)
        .where(PremiumMembership.status == "pending")
    ).first()
    if pending:
        raise HTTPException(status_code=409, detail="Your previous request is still being reviewed.")
    proof_url = None
    if payment_proof is not None:
        content = await payment_proof.read()
        ext, errors = validate_image(content, payment_proof.content_type, label="Payment proof")
        if errors:
            raise HTTPException(status_code=422, detail=". ".join(errors))
        path = f"premium-proofs/{user.id}-{int(datetime.utcnow().timestamp() * 1000)}.{ext}"
        try:
            storage.upload(storage.ORDER_FILES_BUCKET, path, content)
        except storage.StorageError as e:
            raise HTTPException(status_code=500, detail=f"Failed to upload payment proof: {e}")
        proof_url = storage.get_public_url(storage.ORDER_FILES_BUCKET, path)
    m = PremiumMembership(
        user_id=user.id,
        plan_type=plan_type,
        price_paid=plan[1],
        payment_method=(payment_method or "").strip(),
        transaction_id=(transaction_id or "").strip() or None,
        payment_proof_url=proof_url,
    )
    db.add(m)
    db.commit()
    db.refresh(m)
    return membership_dict(m)


@router.get("/me")
def my_membership(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    active = active_membership(db, user.id)
    latest = db.exec(
        select(PremiumMembership)
        .where(PremiumMembership.user_id == user.id)
        .order_by(PremiumMembership.requested_at.desc(), PremiumMembership.id.desc())
    ).first()
    return {
        "is_premium": active is not None,
        "membership": membership_dict(active) if active else None,
        "latest_request": membership_dict(latest) if latest else None,
    }


@router.get("/content")
def premium_content(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    if not is_premium(db, user.id):
        raise HTTPException(status_code=403, detail="Premium membership required.")
    rows = db.exec(
        select(PremiumContent)
        .where(PremiumContent.is_active == True)  # noqa: E712
        .order_by(PremiumContent.created_at.desc())
    ).all()
    return [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "content_type": c.content_type,
            "content_url": c.content_url,
            "content_body": c.content_body,
        }
        for c in rows
    ]
