"""Commission config repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_commission import CommissionConfig


class CommissionRepository:
    @staticmethod
    def list_configs(db: Session, agency_id: int) -> list[CommissionConfig]:
        return (
            db.query(CommissionConfig)
            .filter(CommissionConfig.agency_id == agency_id)
            .order_by(CommissionConfig.id.asc())
            .all()
        )

    @staticmethod
    def get_config(db: Session, config_id: int, agency_id: int) -> Optional[CommissionConfig]:
        return (
            db.query(CommissionConfig)
            .filter(CommissionConfig.id == config_id, CommissionConfig.agency_id == agency_id)
            .first()
        )

    @staticmethod
    def find_scoped(
        db: Session, agency_id: int, unit_id: Optional[int] = None, user_id: Optional[int] = None
    ) -> Optional[CommissionConfig]:
        """Exact scope lookup; None ids match rows where that column is NULL"""
        query = db.query(CommissionConfig).filter(CommissionConfig.agency_id == agency_id)
        query = query.filter(
            CommissionConfig.unit_id == unit_id if unit_id is not None else CommissionConfig.unit_id.is_(None)
        )
        query = query.filter(
            CommissionConfig.user_id == user_id if user_id is not None else CommissionConfig.user_id.is_(None)
        )
        return query.first()

    @staticmethod
    def create_config(db: Session, **data) -> CommissionConfig:
        config = CommissionConfig(**data)
        db.add(config)
        db.commit()
        db.refresh(config)
        return config

    @staticmethod
    def update_config(db: Session, config: CommissionConfig, **updates) -> CommissionConfig:
        for key, value in updates.items():
            if value is not None and hasattr(config, key):
                setattr(config, key, value)
        db.commit()
        db.refresh(config)
        return config

    @staticmethod
    def delete_config(db: Session, config: CommissionConfig) -> None:
        db.delete(config)
        db.commit()
