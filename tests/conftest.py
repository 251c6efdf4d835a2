"""
Pytest configuration and shared fixtures for catalog service tests.
"""
from datetime import datetime, timezone

import pytest

from catalog_service import create_app
from catalog_service.extensions import db
from catalog_service.application.catalog.create_entity import create_entity
from catalog_service.gateways.base import BillingGateway, BillingProviderError, SyncResult
from catalog_service.gateways.registry import EXTENSION_KEY
from catalog_service.models.workspace import Workspace

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

PER_UNIT_CONFIG = {
    "pricing": {
        "model": "per_unit",
        "currency": "USD",
        "amount": 1000,
        "interval": "month",
    },
}

TIERED_CONFIG = {
    "pricing": {
        "model": "tiered",
        "currency": "USD",
        "interval": "month",
        "tiers": [
            {"up_to": 10, "unit_amount": 1000},
            {"up_to": None, "unit_amount": 500},
        ],
    },
}

PERCENT_PROMO_CONFIG = {
    "discount_type": "percent",
    "discount_value": 20,
    "duration": "once",
}


class FakeGateway(BillingGateway):
    """In-memory billing provider recording every call."""

    name = "fake"

    def __init__(self):
        self.calls = []
        self.fail_sync = False
        self.fail_deactivate = False
        self._seq = 0

    def _mint(self, prefix):
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def _sync(self, method, parent_prefix, version_prefix, entity, version, existing_parent_ref):
        self.calls.append((
            method,
            entity.id,
            version.id,
            existing_parent_ref.external_id if existing_parent_ref else None,
        ))
        if self.fail_sync:
            raise BillingProviderError("remote rejected the request", provider=self.name)

        parent_id = existing_parent_ref.external_id if existing_parent_ref else self._mint(parent_prefix)
        return SyncResult(parent_external_id=parent_id, version_external_id=self._mint(version_prefix))

    def sync_catalog_entity(self, entity, version, config, existing_parent_ref=None):
        return self._sync("sync_catalog_entity", "prod", "price", entity, version, existing_parent_ref)

    def sync_discount_entity(self, entity, version, config, existing_parent_ref=None):
        return self._sync("sync_discount_entity", "coupon", "promo", entity, version, existing_parent_ref)

    def deactivate_parent_resource(self, external_id, *, kind="offer"):
        self.calls.append(("deactivate_parent_resource", external_id, kind))
        if self.fail_deactivate:
            raise BillingProviderError("remote unavailable", provider=self.name)


@pytest.fixture
def app():
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway(app):
    fake = FakeGateway()
    app.extensions[EXTENSION_KEY] = fake
    yield fake
    app.extensions.pop(EXTENSION_KEY, None)


def _make_workspace(slug):
    workspace = Workspace()
    workspace.name = slug.title()
    workspace.slug = slug
    db.session.add(workspace)
    db.session.commit()
    return workspace


@pytest.fixture
def workspace(app):
    return _make_workspace("acme")


@pytest.fixture
def other_workspace(app):
    return _make_workspace("globex")


@pytest.fixture
def make_offer(workspace):
    def _make(config=None, name="Pro plan", **extra):
        return create_entity(
            workspace_id=workspace.id,
            kind="offer",
            data={"name": name, "config": PER_UNIT_CONFIG if config is None else config, **extra},
        )
    return _make


@pytest.fixture
def make_promotion(workspace):
    def _make(code="SPRING20", config=None, name="Spring sale"):
        return create_entity(
            workspace_id=workspace.id,
            kind="promotion",
            data={
                "name": name,
                "code": code,
                "config": PERCENT_PROMO_CONFIG if config is None else config,
            },
        )
    return _make
