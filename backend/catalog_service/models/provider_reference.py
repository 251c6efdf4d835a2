from catalog_service.extensions import db
from .base import BaseModel
from .workspace_mixin import WorkspaceMixin

# Parent-level and version-level reference types per entity kind
REFERENCE_TYPES = {
    "offer": ("product", "price"),
    "promotion": ("coupon", "promotion_code"),
}


class ProviderReference(BaseModel, WorkspaceMixin):
    __tablename__ = "provider_reference"

    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(36), nullable=False, index=True)
    provider = db.Column(db.String(50), nullable=False)
    external_id = db.Column(db.String(255), nullable=False)

    __table_args__ = (
        db.UniqueConstraint(
            "workspace_id", "entity_type", "entity_id", "provider",
            name="uq_provider_reference_entity",
        ),
        db.Index("ix_provider_reference_external", "workspace_id", "provider", "entity_type", "external_id"),
    )
