"""External agency repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import ExternalAgency, User


class AgencyRepository:
    @staticmethod
    def get_by_id(db: Session, agency_id: int) -> Optional[ExternalAgency]:
        return db.query(ExternalAgency).filter(ExternalAgency.id == agency_id).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(ExternalAgency.id).filter(ExternalAgency.slug == slug).first() is not None

    @staticmethod
    def list_query(db: Session, active: Optional[bool] = None, search: Optional[str] = None):
        query = db.query(ExternalAgency)
        if active is not None:
            query = query.filter(ExternalAgency.is_active == active)
        if search:
            query = query.filter(ExternalAgency.name.ilike(f"%{search}%"))
        return query

    @staticmethod
    def create(db: Session, **data) -> ExternalAgency:
        agency = ExternalAgency(**data)
        db.add(agency)
        db.commit()
        db.refresh(agency)
        return agency

    @staticmethod
    def update(db: Session, agency: ExternalAgency, **updates) -> ExternalAgency:
        for key, value in updates.items():
            if value is not None and hasattr(agency, key):
                setattr(agency, key, value)
        db.commit()
        db.refresh(agency)
        return agency

    @staticmethod
    def get_team(db: Session, agency_id: int) -> list[User]:
        return (
            db.query(User)
            .filter(User.external_agency_id == agency_id)
            .order_by(User.created_at.asc(), User.id.asc())
            .all()
        )

    @staticmethod
    def email_exists(db: Session, email: str) -> bool:
        return db.query(User.id).filter(User.email == email).first() is not None
