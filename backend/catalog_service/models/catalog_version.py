from catalog_service.extensions import db
from .base import BaseModel
from .types import UTCDateTime


class CatalogVersion(BaseModel):
    __tablename__ = "catalog_version"

    parent_id = db.Column(
        db.String(36),
        db.ForeignKey("catalog_entity.id"),
        nullable=False
    )

    version_number = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="draft")
    # draft | published | archived

    config = db.Column("config_json", db.JSON, nullable=False, default=dict)

    effective_from = db.Column(UTCDateTime, nullable=True)
    published_at = db.Column(UTCDateTime, nullable=True)

    # pending | synced, written alongside the publish commit
    sync_status = db.Column(db.String(20), nullable=True, index=True)

    parent = db.relationship(
        "CatalogEntity",
        back_populates="versions",
        foreign_keys=[parent_id],
    )

    __table_args__ = (
        db.UniqueConstraint("parent_id", "version_number", name="uq_catalog_version_number"),
        db.Index("idx_catalog_version_parent", "parent_id"),
        # At most one draft per parent
        db.Index(
            "uq_catalog_version_single_draft",
            "parent_id",
            unique=True,
            sqlite_where=db.text("status = 'draft'"),
            postgresql_where=db.text("status = 'draft'"),
        ),
    )
