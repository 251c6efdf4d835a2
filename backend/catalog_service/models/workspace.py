from catalog_service.extensions import db
from .base import BaseModel

class Workspace(BaseModel):
    __tablename__ = "workspaces"

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True)
