"""
Publish-time synchronization with the billing provider.

The local publish is committed before the saga starts. If the remote step
fails, the saga hands control back to the caller-supplied compensation, which
reverts the local transition, and then raises ProviderSyncError. The
compensation is its own transaction: if it fails too, the version stays
published with ``sync_status = 'pending'`` and no provider references, and the
raised error reports ``compensated=False``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from catalog_service.domain.config.registry import parse_config
from catalog_service.domain.exceptions import ProviderDeactivationError, ProviderSyncError
from catalog_service.gateways.base import BillingGateway
from catalog_service.gateways.registry import get_billing_gateway
from catalog_service.models.provider_reference import REFERENCE_TYPES, ProviderReference
from catalog_service.store import provider_refs
from catalog_service.utils.transaction import transactional


@dataclass
class SyncOutcome:
    ok: bool
    parent_ref: Optional[ProviderReference] = None
    version_ref: Optional[ProviderReference] = None
    error: Optional[Exception] = None


class ProviderSyncSaga:
    def __init__(self, gateway: BillingGateway):
        self.gateway = gateway

    @classmethod
    def configured(cls) -> "ProviderSyncSaga":
        return cls(get_billing_gateway())

    @property
    def provider(self) -> str:
        return self.gateway.name

    def synchronize(self, entity, version) -> SyncOutcome:
        """
        Mirror ``version`` remotely and record the provider references.

        Never raises for remote or persistence failures; those come back as
        ``SyncOutcome(ok=False, error=...)`` with no reference rows written.
        """
        parent_type, version_type = REFERENCE_TYPES[entity.kind]
        workspace_id = entity.workspace_id

        # 1️⃣ Reuse the remote parent resource if we have one
        existing = provider_refs.find_by_entity(workspace_id, parent_type, entity.id, self.provider)

        try:
            config = parse_config(entity.kind, version.config)

            # 2️⃣ Remote call
            if entity.kind == "offer":
                result = self.gateway.sync_catalog_entity(entity, version, config, existing)
            else:
                result = self.gateway.sync_discount_entity(entity, version, config, existing)

            # 3️⃣ Record references and mark the version synced
            with transactional():
                parent_ref = existing or provider_refs.ensure_reference(
                    workspace_id=workspace_id,
                    entity_type=parent_type,
                    entity_id=entity.id,
                    provider=self.provider,
                    external_id=result.parent_external_id,
                )
                version_ref = provider_refs.ensure_reference(
                    workspace_id=workspace_id,
                    entity_type=version_type,
                    entity_id=version.id,
                    provider=self.provider,
                    external_id=result.version_external_id,
                )
                version.sync_status = "synced"

        except SQLAlchemyError as exc:
            current_app.logger.error(
                "Recording provider references failed for %s %s version %s (%s): %s",
                entity.kind, entity.id, version.id, self.provider, exc,
            )
            return SyncOutcome(ok=False, error=exc)
        except Exception as exc:
            # Unwrapped gateway failures (timeouts, resets) compensate like any other
            current_app.logger.error(
                "Provider sync failed for %s %s version %s (%s): %s",
                entity.kind, entity.id, version.id, self.provider, exc,
            )
            return SyncOutcome(ok=False, error=exc)

        current_app.logger.info(
            "Synced %s %s version %s to %s: %s=%s %s=%s",
            entity.kind, entity.id, version.id, self.provider,
            parent_type, parent_ref.external_id, version_type, version_ref.external_id,
        )
        return SyncOutcome(ok=True, parent_ref=parent_ref, version_ref=version_ref)

    def run(self, entity, version, *, compensate: Callable[[], None]) -> SyncOutcome:
        """Synchronize, compensating and raising ProviderSyncError on failure."""
        outcome = self.synchronize(entity, version)
        if outcome.ok:
            return outcome

        # 4️⃣ Undo the local publish, then surface the original failure
        compensated = True
        try:
            compensate()
        except Exception as comp_exc:
            compensated = False
            current_app.logger.critical(
                "Compensation failed for %s %s version %s; version is published without "
                "provider references (sync_status=pending): %s",
                entity.kind, entity.id, version.id, comp_exc,
            )

        message = f"Failed to sync to {self.provider}: {outcome.error}."
        message += (
            " Changes have been rolled back." if compensated
            else " Rollback also failed; manual repair required."
        )
        raise ProviderSyncError(
            message,
            provider=self.provider,
            compensated=compensated,
            entity_id=entity.id,
            version_id=version.id,
        ) from outcome.error

    def deactivate(self, entity) -> bool:
        """
        Best-effort remote deactivation for an archived entity.

        Returns False (after logging) when the remote call fails; archive does
        not depend on it.
        """
        parent_type, _ = REFERENCE_TYPES[entity.kind]
        ref = provider_refs.find_by_entity(entity.workspace_id, parent_type, entity.id, self.provider)
        if ref is None:
            return False

        try:
            self.gateway.deactivate_parent_resource(ref.external_id, kind=entity.kind)
        except Exception as exc:
            error = ProviderDeactivationError(
                f"Failed to deactivate {parent_type} {ref.external_id}: {exc}",
                provider=self.provider,
                external_id=ref.external_id,
            )
            current_app.logger.warning("%s (%s %s archived locally)", error, entity.kind, entity.id)
            return False

        current_app.logger.info("Deactivated %s %s on %s", parent_type, ref.external_id, self.provider)
        return True
