"""Premium manager: membership review, premium product pricing and members-only content."""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from devsera.admin.deps import require_permission
from devsera.api.premium import membership_dict
from devsera.core.database import get_db
from devsera.models import PremiumContent, PremiumMembership, PremiumProduct, Product, Profile
from devsera.models.premium import CONTENT_TYPES, MEMBERSHIP_STATUSES
from devsera.schemas import ExtendMembership, PremiumContentIn, PremiumProductIn, RejectMembership, RevokeMembership
from devsera.services import premium as premium_service
from devsera.services.csv_export import MEMBERSHIP_COLUMNS, csv_response, generate_csv

router = APIRouter()


def _membership(db: Session, membership_id: int) -> PremiumMembership:
    m = db.get(PremiumMembership, membership_id)
    if not m:
        raise HTTPException(status_code=404, detail="Membership not found.")
    return m


def _with_customer(db: Session, m: PremiumMembership) -> dict:
    customer = db.get(Profile, m.user_id)
    data = membership_dict(m)
    data["user_id"] = m.user_id
    data["customer_email"] = customer.email if customer else ""
    return data


def _transition(fn, *args):
    try:
        return fn(*args)
    except premium_service.MembershipError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/memberships")
def memberships_list(
    status: str | None = None,
    _=Depends(require_permission("can_view_premium")),
    db: Session = Depends(get_db),
):
    stmt = select(PremiumMembership).order_by(PremiumMembership.requested_at.desc(), PremiumMembership.id.desc())
    if status and status in MEMBERSHIP_STATUSES:
        stmt = stmt.where(PremiumMembership.status == status)
    return [_with_customer(db, m) for m in db.exec(stmt).all()]


@router.get("/memberships/export")
def memberships_export(_=Depends(require_permission("can_view_premium")), db: Session = Depends(get_db)):
    rows = []
    for m in db.exec(select(PremiumMembership).order_by(PremiumMembership.id)).all():
        customer = db.get(Profile, m.user_id)
        rows.append({"membership": m, "customer_email": customer.email if customer else ""})
    return csv_response(generate_csv(rows, MEMBERSHIP_COLUMNS), "premium_memberships")


@router.post("/memberships/{membership_id}/approve")
def membership_approve(
    membership_id: int,
    admin: Profile = Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    m = _transition(premium_service.approve, db, _membership(db, membership_id), admin.id)
    return _with_customer(db, m)


@router.post("/memberships/{membership_id}/reject")
def membership_reject(
    membership_id: int,
    body: RejectMembership,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    m = _transition(premium_service.reject, db, _membership(db, membership_id), body.reason.strip())
    return _with_customer(db, m)


@router.post("/memberships/{membership_id}/revoke")
def membership_revoke(
    membership_id: int,
    body: RevokeMembership,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    m = _transition(premium_service.revoke, db, _membership(db, membership_id), body.reason.strip())
    return _with_customer(db, m)


@router.post("/memberships/{membership_id}/extend")
def membership_extend(
    membership_id: int,
    body: ExtendMembership,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    m = _transition(premium_service.extend, db, _membership(db, membership_id), body.days)
    return _with_customer(db, m)


@router.delete("/memberships/{membership_id}")
def membership_delete(
    membership_id: int,
    _=Depends(require_permission("can_delete_premium")),
    db: Session = Depends(get_db),
):
    db.delete(_membership(db, membership_id))
    db.commit()
    return {"ok": True}


@router.get("/products")
def premium_products(_=Depends(require_permission("can_view_premium")), db: Session = Depends(get_db)):
    rows = db.exec(select(PremiumProduct).order_by(PremiumProduct.id)).all()
    out = []
    for pp in rows:
        product = db.get(Product, pp.product_id)
        out.append(
            {
                "id": pp.id,
                "product_id": pp.product_id,
                "product_name": product.name if product else "",
                "is_free_for_premium": pp.is_free_for_premium,
                "premium_discount_percent": pp.premium_discount_percent,
                "premium_only": pp.premium_only,
            }
        )
    return out


@router.put("/products")
def premium_product_upsert(
    body: PremiumProductIn,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    if not db.get(Product, body.product_id):
        raise HTTPException(status_code=404, detail="Product not found.")
    pp = db.exec(select(PremiumProduct).where(PremiumProduct.product_id == body.product_id)).first()
    if pp is None:
        pp = PremiumProduct(product_id=body.product_id)
    pp.is_free_for_premium = body.is_free_for_premium
    pp.premium_discount_percent = body.premium_discount_percent
    pp.premium_only = body.premium_only
    pp.updated_at = datetime.utcnow()
    db.add(pp)
    db.commit()
    db.refresh(pp)
    return pp.model_dump(exclude={"created_at", "updated_at"})


@router.delete("/products/{product_id}")
def premium_product_delete(
    product_id: int,
    _=Depends(require_permission("can_delete_premium")),
    db: Session = Depends(get_db),
):
    pp = db.exec(select(PremiumProduct).where(PremiumProduct.product_id == product_id)).first()
    if not pp:
        raise HTTPException(status_code=404, detail="Premium settings not found for this product.")
    db.delete(pp)
    db.commit()
    return {"ok": True}


def _content_dict(c: PremiumContent) -> dict:
    return {
        "id": c.id,
        "title": c.title,
        "description": c.description,
        "content_type": c.content_type,
        "content_url": c.content_url,
        "content_body": c.content_body,
        "is_active": c.is_active,
        "created_at": c.created_at.strftime("%d.%m.%Y %H:%M") if c.created_at else "-",
    }


def _check_content_type(body: PremiumContentIn) -> None:
    if body.content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=422, detail=f"content_type must be one of {', '.join(CONTENT_TYPES)}")


@router.get("/content")
def content_list(_=Depends(require_permission("can_view_premium")), db: Session = Depends(get_db)):
    return [_content_dict(c) for c in db.exec(select(PremiumContent).order_by(PremiumContent.id.desc())).all()]


@router.post("/content", status_code=201)
def content_create(
    body: PremiumContentIn,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    _check_content_type(body)
    c = PremiumContent(**body.model_dump())
    db.add(c)
    db.commit()
    db.refresh(c)
    return _content_dict(c)


@router.put("/content/{content_id}")
def content_update(
    content_id: int,
    body: PremiumContentIn,
    _=Depends(require_permission("can_edit_premium")),
    db: Session = Depends(get_db),
):
    _check_content_type(body)
    c = db.get(PremiumContent, content_id)
    if not c:
        raise HTTPException(status_code=404, detail="Content not found.")
    for field, value in body.model_dump().items():
        setattr(c, field, value)
    c.updated_at = datetime.utcnow()
    db.add(c)
    db.commit()
    db.refresh(c)
    return _content_dict(c)


@router.delete("/content/{content_id}")
def content_delete(
    content_id: int,
    _=Depends(require_permission("can_delete_premium")),
    db: Session = Depends(get_db),
):
    c = db.get(PremiumContent, content_id)
    if not c:
        raise HTTPException(status_code=404, detail="Content not found.")
    db.delete(c)
    db.commit()
    return {"ok": True}
