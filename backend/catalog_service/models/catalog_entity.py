from catalog_service.extensions import db
from .base import BaseModel
from .workspace_mixin import WorkspaceMixin

ENTITY_KINDS = ("offer", "promotion")
ENTITY_STATUSES = ("draft", "active", "archived")


class CatalogEntity(BaseModel, WorkspaceMixin):
    """
    An Offer or a Promotion. Both share this table; `kind` decides which
    config variant its versions carry.
    """
    __tablename__ = "catalog_entity"

    kind = db.Column(db.String(20), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Promotions only: customer-facing code, upper-cased
    code = db.Column(db.String(100), nullable=True)

    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    # draft | active | archived

    # Only ever set by an immediate publish
    current_version_id = db.Column(
        db.String(36),
        db.ForeignKey("catalog_version.id", use_alter=True, name="fk_catalog_entity_current_version"),
        nullable=True,
    )

    versions = db.relationship(
        "CatalogVersion",
        back_populates="parent",
        foreign_keys="CatalogVersion.parent_id",
        order_by="CatalogVersion.version_number.desc()",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("workspace_id", "code", name="uq_catalog_entity_code_per_workspace"),
        db.Index("ix_catalog_entity_cursor", "workspace_id", "created_at", "id"),
    )
