from typing import Any, Mapping, Union

from catalog_service.domain.exceptions import ValidationError
from .discount import PromotionConfig, parse_promotion_config
from .pricing import OfferConfig, parse_offer_config

EntityConfig = Union[OfferConfig, PromotionConfig]

CONFIG_PARSERS = {
    "offer": parse_offer_config,
    "promotion": parse_promotion_config,
}


def parse_config(kind: str, raw: Mapping[str, Any] | None) -> EntityConfig:
    """Parse a version's stored config into the variant for its entity kind."""
    parser = CONFIG_PARSERS.get(kind)
    if parser is None:
        raise ValidationError(f"Unknown catalog entity kind: {kind}", field="kind")
    return parser(raw)


def assert_draft_config(raw: Any) -> dict:
    """Drafts may be incomplete but must be a JSON object."""
    if not isinstance(raw, Mapping):
        raise ValidationError("config must be an object", field="config")
    return dict(raw)
