from catalog_service.extensions import db

class WorkspaceMixin:
    workspace_id = db.Column(
        db.String(36),
        db.ForeignKey('workspaces.id'),
        nullable=False,
        index=True
    )
