# catalog_service/application/catalog/quote.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from catalog_service.domain.config.pricing import OfferConfig, parse_offer_config
from catalog_service.domain.exceptions import NotFoundError
from catalog_service.domain.pricing import PriceResult, price_for
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.store import catalog_store
from .resolver import get_effective_version


@dataclass(frozen=True)
class Quote:
    offer_id: str
    version: CatalogVersion
    config: OfferConfig
    result: PriceResult

    @property
    def currency(self) -> str:
        return self.config.pricing.currency


def quote_offer(
    *,
    workspace_id: str,
    offer_id: str,
    quantity: int = 1,
    as_of: Optional[datetime] = None,
) -> Quote:
    """Price ``quantity`` units of an offer using the version effective at ``as_of``."""
    offer = catalog_store.get_entity(workspace_id, offer_id, kind="offer")

    version = get_effective_version(workspace_id=workspace_id, entity_id=offer.id, as_of=as_of)
    if version is None:
        raise NotFoundError(f"Offer {offer.id} has no effective version", entity_id=offer.id)

    config = parse_offer_config(version.config)
    return Quote(
        offer_id=offer.id,
        version=version,
        config=config,
        result=price_for(config.pricing, quantity),
    )
