"""
Contract between the catalog core and an external billing provider.

Gateways create the remote parent resource (product / coupon) on first sync,
reuse it afterwards, and always mint a fresh version-level resource
(price / promotion code), because those are immutable once created remotely.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class BillingProviderError(Exception):
    """Any remote rejection or transport failure from a billing provider."""

    def __init__(self, message: str, *, provider: str, code: str = "PROVIDER_ERROR", cause: Exception | None = None):
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.cause = cause


@dataclass(frozen=True)
class SyncResult:
    parent_external_id: str
    version_external_id: str


class BillingGateway(ABC):
    name: str

    @abstractmethod
    def sync_catalog_entity(self, entity, version, config, existing_parent_ref: Optional[object] = None) -> SyncResult:
        """Mirror an offer version; ``config`` is its parsed OfferConfig."""

    @abstractmethod
    def sync_discount_entity(self, entity, version, config, existing_parent_ref: Optional[object] = None) -> SyncResult:
        """Mirror a promotion version; ``config`` is its parsed PromotionConfig."""

    @abstractmethod
    def deactivate_parent_resource(self, external_id: str, *, kind: str = "offer") -> None:
        """Disable the remote parent resource so it can no longer be sold."""
