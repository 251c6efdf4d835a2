import copy


def snapshot_config(version):
    """Deep copy of a version's config, detached from the ORM instance."""
    return copy.deepcopy(version.config or {})


def next_version_number(parent_id):
    from catalog_service.models.catalog_version import CatalogVersion

    last = (
        CatalogVersion.query
        .filter_by(parent_id=parent_id)
        .order_by(CatalogVersion.version_number.desc())
        .first()
    )
    return (last.version_number + 1) if last else 1
