"""
repositories.py — CRUD over saved estimates, business settings and materials.

Every repository is scoped to one business_id. Rows are converted to and from
the pydantic models at this boundary; callers never see ORM objects.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from foamboss.models.estimate_schema import EstimateRecord
from foamboss.models.material_schema import Material
from foamboss.models.orm_models import BusinessSettingsORM, EstimateORM, MaterialORM, gen_uuid
from foamboss.models.settings_schema import BusinessSettings
from foamboss.services.settings_engine import default_pricing

logger = logging.getLogger("foamboss-db")


def _commit(db: Session) -> None:
    """Commit, rolling back on failure so the session stays usable."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Estimates
# ---------------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _estimate_to_record(obj: EstimateORM) -> EstimateRecord:
    return EstimateRecord.model_validate({
        "id": obj.id,
        "business_id": obj.business_id,
        "job_name": obj.job_name,
        "customer_name": obj.customer_name,
        "building_type": obj.building_type,
        "default_foam": obj.default_foam,
        "created_at": _as_utc(obj.created_at),
        "miles": obj.miles,
        "assemblies": obj.assemblies or [],
        "pricing": obj.pricing or {},
        "totals": obj.totals or {},
    })


class EstimateRepository:
    """Saved estimates for one business."""

    def __init__(self, db: Session, business_id: Optional[str] = None) -> None:
        self._db = db
        self.business_id = business_id

    def _get_row(self, estimate_id: str) -> Optional[EstimateORM]:
        obj = self._db.get(EstimateORM, estimate_id)
        if obj is None or obj.business_id != self.business_id:
            return None
        return obj

    def list(self) -> List[EstimateRecord]:
        rows = self._db.scalars(
            select(EstimateORM)
            .where(EstimateORM.business_id == self.business_id)
            .order_by(EstimateORM.created_at.desc())
        ).all()
        return [_estimate_to_record(obj) for obj in rows]

    def get(self, estimate_id: str) -> EstimateRecord:
        obj = self._get_row(estimate_id)
        if obj is None:
            raise KeyError(f"Estimate '{estimate_id}' not found")
        return _estimate_to_record(obj)

    def save(self, record: EstimateRecord) -> EstimateRecord:
        """
        Insert a new estimate or overwrite an existing one with the same id.

        Raises PermissionError when the id already belongs to another business.
        """
        data = record.model_dump(mode="json")
        obj = self._db.get(EstimateORM, record.id)
        if obj is not None and obj.business_id != self.business_id:
            raise PermissionError(f"Estimate '{record.id}' belongs to another business")
        if obj is None:
            obj = EstimateORM(
                id=record.id, business_id=self.business_id, created_at=_as_utc(record.created_at)
            )
            self._db.add(obj)

        obj.job_name = record.job_name
        obj.customer_name = record.customer_name
        obj.building_type = record.building_type
        obj.default_foam = record.default_foam
        obj.miles = record.miles
        obj.assemblies = data["assemblies"]
        obj.pricing = data["pricing"]
        obj.totals = data["totals"]
        obj.grand_total = record.totals.grand_total

        _commit(self._db)
        logger.info(
            "estimate persisted",
            extra={"estimate_id": record.id, "business_id": self.business_id},
        )
        return record.model_copy(update={"business_id": self.business_id})

    def delete(self, estimate_id: str) -> None:
        obj = self._get_row(estimate_id)
        if obj is None:
            raise KeyError(f"Estimate '{estimate_id}' not found")
        self._db.delete(obj)
        _commit(self._db)


# ---------------------------------------------------------------------------
# Business settings
# ---------------------------------------------------------------------------

class SettingsRepository:
    """One settings row per business; missing rows read as shipped defaults."""

    def __init__(self, db: Session, business_id: str) -> None:
        self._db = db
        self.business_id = business_id

    def get(self) -> BusinessSettings:
        obj = self._db.get(BusinessSettingsORM, self.business_id)
        if obj is None:
            return BusinessSettings(business_id=self.business_id, pricing=default_pricing())
        return BusinessSettings.model_validate({
            "business_id": obj.business_id,
            "company": obj.company or {},
            "pricing": obj.pricing or {},
            "users": obj.users or [],
        })

    def save(self, settings: BusinessSettings) -> BusinessSettings:
        data = settings.model_dump(mode="json")
        obj = self._db.get(BusinessSettingsORM, self.business_id)
        if obj is None:
            obj = BusinessSettingsORM(business_id=self.business_id)
            self._db.add(obj)
        obj.company = data["company"]
        obj.pricing = data["pricing"]
        obj.users = data["users"]
        _commit(self._db)
        logger.info("settings persisted", extra={"business_id": self.business_id})
        return settings.model_copy(update={"business_id": self.business_id})


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------

_MATERIAL_FIELDS = (
    "material_name",
    "material_type",
    "unit_price",
    "yield_per_unit",
    "unit_type",
    "quantity_on_hand",
    "reorder_level",
    "cost_per_bdft",
    "notes",
)


def _material_from_row(obj: MaterialORM) -> Material:
    return Material(
        id=obj.id,
        business_id=obj.business_id,
        **{field: getattr(obj, field) for field in _MATERIAL_FIELDS},
    )


class MaterialRepository:
    """Material inventory for one business."""

    def __init__(self, db: Session, business_id: Optional[str] = None) -> None:
        self._db = db
        self.business_id = business_id

    def _get_row(self, material_id: str) -> Optional[MaterialORM]:
        obj = self._db.get(MaterialORM, material_id)
        if obj is None or obj.business_id != self.business_id:
            return None
        return obj

    def list(self) -> List[Material]:
        rows = self._db.scalars(
            select(MaterialORM)
            .where(MaterialORM.business_id == self.business_id)
            .order_by(MaterialORM.material_name)
        ).all()
        return [_material_from_row(obj) for obj in rows]

    def insert(self, material: Material) -> Material:
        obj = MaterialORM(
            id=material.id or gen_uuid(),
            business_id=self.business_id,
            **{field: getattr(material, field) for field in _MATERIAL_FIELDS},
        )
        self._db.add(obj)
        _commit(self._db)
        return _material_from_row(obj)

    def update(self, material: Material) -> Material:
        if material.id is None:
            raise ValueError("Material.id must be set for update")
        obj = self._get_row(material.id)
        if obj is None:
            raise KeyError(f"Material '{material.id}' not found")
        for field in _MATERIAL_FIELDS:
            setattr(obj, field, getattr(material, field))
        _commit(self._db)
        return _material_from_row(obj)

    def delete(self, material_id: str) -> None:
        obj = self._get_row(material_id)
        if obj is None:
            raise KeyError(f"Material '{material_id}' not found")
        self._db.delete(obj)
        _commit(self._db)
