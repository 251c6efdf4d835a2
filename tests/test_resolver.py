from datetime import timedelta

import pytest

from catalog_service.extensions import db
from catalog_service.application.catalog.drafts import create_draft
from catalog_service.application.catalog.publish_version import publish_version
from catalog_service.application.catalog.quote import quote_offer
from catalog_service.application.catalog.resolver import (
    get_effective_version,
    get_scheduled_versions,
    get_version,
)
from catalog_service.domain.exceptions import NotFoundError
from catalog_service.models.catalog_version import CatalogVersion

from conftest import NOW, PER_UNIT_CONFIG, TIERED_CONFIG


def _published_row(entity, number, *, published_at, effective_from=None):
    version = CatalogVersion()
    version.parent_id = entity.id
    version.version_number = number
    version.status = "published"
    version.config = PER_UNIT_CONFIG
    version.published_at = published_at
    version.effective_from = effective_from
    db.session.add(version)
    db.session.commit()
    return version


def _effective(workspace, entity, as_of):
    return get_effective_version(workspace_id=workspace.id, entity_id=entity.id, as_of=as_of)


def test_no_published_version(workspace, make_offer):
    offer = make_offer()
    assert _effective(workspace, offer, NOW) is None


def test_later_published_at_wins_between_undated_versions(workspace, make_offer):
    offer = make_offer()
    older = _published_row(offer, 2, published_at=NOW - timedelta(days=2))
    newer = _published_row(offer, 3, published_at=NOW - timedelta(days=1))

    assert _effective(workspace, offer, NOW).id == newer.id
    assert older.id != newer.id


def test_explicit_effective_date_beats_undated(workspace, make_offer):
    offer = make_offer()
    dated = _published_row(
        offer, 2,
        published_at=NOW - timedelta(days=10),
        effective_from=NOW - timedelta(days=5),
    )
    _published_row(offer, 3, published_at=NOW - timedelta(days=1))

    assert _effective(workspace, offer, NOW).id == dated.id


def test_most_recent_effective_date_wins(workspace, make_offer):
    offer = make_offer()
    _published_row(offer, 2, published_at=NOW - timedelta(days=10), effective_from=NOW - timedelta(days=9))
    recent = _published_row(offer, 3, published_at=NOW - timedelta(days=20), effective_from=NOW - timedelta(days=1))

    assert _effective(workspace, offer, NOW).id == recent.id


def test_future_versions_are_not_effective(workspace, make_offer):
    offer = make_offer()
    current = _published_row(offer, 2, published_at=NOW - timedelta(days=1))
    _published_row(offer, 3, published_at=NOW, effective_from=NOW + timedelta(days=1))

    assert _effective(workspace, offer, NOW).id == current.id


def test_scheduled_publish_takes_over_at_effective_from(workspace, gateway, make_offer):
    offer = make_offer()
    v1 = publish_version(workspace_id=workspace.id, entity_id=offer.id, now=NOW)
    create_draft(workspace_id=workspace.id, entity_id=offer.id, config=TIERED_CONFIG)
    v2 = publish_version(
        workspace_id=workspace.id,
        entity_id=offer.id,
        effective_from=NOW + timedelta(days=7),
        now=NOW,
    )

    assert _effective(workspace, offer, NOW).id == v1.id
    assert _effective(workspace, offer, NOW + timedelta(days=8)).id == v2.id


def test_scheduled_versions_soonest_first(workspace, make_offer):
    offer = make_offer()
    _published_row(offer, 2, published_at=NOW)
    later = _published_row(offer, 3, published_at=NOW, effective_from=NOW + timedelta(days=30))
    sooner = _published_row(offer, 4, published_at=NOW, effective_from=NOW + timedelta(days=3))

    scheduled = get_scheduled_versions(workspace_id=workspace.id, entity_id=offer.id, now=NOW)

    assert [v.id for v in scheduled] == [sooner.id, later.id]
    assert get_scheduled_versions(workspace_id=workspace.id, entity_id=offer.id, now=NOW + timedelta(days=31)) == []


def test_resolver_is_workspace_scoped(workspace, other_workspace, make_offer):
    offer = make_offer()
    version = _published_row(offer, 2, published_at=NOW)

    assert get_effective_version(workspace_id=other_workspace.id, entity_id=offer.id, as_of=NOW) is None
    assert get_version(workspace_id=other_workspace.id, version_id=version.id) is None
    assert get_version(workspace_id=workspace.id, version_id=version.id).id == version.id


def test_quote_prices_effective_version(workspace, gateway, make_offer):
    offer = make_offer(config=TIERED_CONFIG)
    version = publish_version(workspace_id=workspace.id, entity_id=offer.id, now=NOW)

    quote = quote_offer(workspace_id=workspace.id, offer_id=offer.id, quantity=15, as_of=NOW)

    assert quote.version.id == version.id
    assert quote.currency == "USD"
    assert quote.result.total_price == 12500


def test_quote_without_effective_version(workspace, make_offer):
    offer = make_offer()
    with pytest.raises(NotFoundError):
        quote_offer(workspace_id=workspace.id, offer_id=offer.id, quantity=1, as_of=NOW)


def test_quote_only_for_offers(workspace, make_promotion):
    promo = make_promotion()
    with pytest.raises(NotFoundError):
        quote_offer(workspace_id=workspace.id, offer_id=promo.id, quantity=1)
