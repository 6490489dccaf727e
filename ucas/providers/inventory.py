"""
Inventory snapshot collaborator and resource-id resolution.

``JsonInventoryProvider`` reads a JSON snapshot exported from the account
management side of the platform::

    {
      "accounts": [
        {
          "account_id": "aws-prod",
          "provider": "AWS",
          "active": true,
          "default_region": "ap-northeast-2",
          "resources": [
            {"id": "i-0abc", "service": "EC2", "instance_type": "t3.medium",
             "state": "running", "tags": {"env": "dev"}}
          ]
        }
      ]
    }

Resource entries inherit ``provider`` and ``region`` from their account when
omitted.  A malformed account entry is logged and skipped; the rest of the
snapshot still loads.  ``JsonInventoryProvider`` re-reads the file on every
call.

``ResourceResolver`` maps the bare resource ids of a simulate request onto
full ``ResourceInfo`` records.  Ids that no active account knows about resolve
to a default descriptor built from ``InventoryConfig``.  Each resolver builds
its id index once, on first use, and keeps it for its own lifetime; build a
new resolver to see a refreshed snapshot.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from ucas.config import InventoryConfig
from ucas.models.resource import CloudAccount, ResourceInfo
from ucas.providers.base import InventoryProvider
from ucas.utils.logging import context_logger

logger = logging.getLogger(__name__)


class JsonInventoryProvider:
    """``InventoryProvider`` backed by a JSON snapshot file."""

    def __init__(self, inventory_path: str | Path, default_region: str = "us-east-1") -> None:
        self._path = Path(inventory_path)
        self._default_region = default_region

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            raise FileNotFoundError(f"Inventory snapshot not found: {self._path}")
        with open(self._path, encoding="utf-8") as f:
            raw = json.load(f)
        accounts = raw.get("accounts", []) if isinstance(raw, dict) else None
        if not isinstance(accounts, list):
            raise ValueError(f"Inventory snapshot {self._path} must contain an 'accounts' list.")
        return accounts

    def list_accounts(self) -> list[CloudAccount]:
        """Every well-formed account block; malformed blocks are logged and skipped."""
        accounts: list[CloudAccount] = []
        for position, block in enumerate(self._load()):
            try:
                accounts.append(_parse_account(block))
            except (KeyError, TypeError, AttributeError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed account entry #%d in %s: %s", position, self._path.name, exc
                )
        return accounts

    def list_resources(self, account: CloudAccount) -> list[ResourceInfo]:
        for block in self._load():
            if isinstance(block, dict) and str(block.get("account_id")) == account.account_id:
                return [
                    _parse_resource(entry, account, self._default_region)
                    for entry in block.get("resources", [])
                ]
        return []


def _parse_account(block: dict[str, Any]) -> CloudAccount:
    account_id = block["account_id"]
    if account_id is None or not str(account_id).strip():
        raise ValueError("blank 'account_id'")
    return CloudAccount(
        account_id=str(account_id),
        provider=block.get("provider", "AWS"),
        active=block.get("active", True),
        default_region=block.get("default_region"),
        display_name=block.get("display_name"),
    )


def _parse_resource(entry: dict[str, Any], account: CloudAccount, default_region: str) -> ResourceInfo:
    """Build a ``ResourceInfo`` from one snapshot entry, inheriting account fields."""
    return ResourceInfo(
        id=entry["id"],
        provider=entry.get("provider", account.provider),
        service=entry.get("service", "EC2"),
        region=entry.get("region") or account.default_region or default_region,
        project=entry.get("project", "default"),
        tags=entry.get("tags", {}),
        instance_type=entry.get("instance_type"),
        name=entry.get("name"),
        state=entry.get("state"),
    )


# ── Resolution ────────────────────────────────────────────────────────────────


class ResourceResolver:
    """Resolve resource ids against the active accounts of an inventory.

    The index is built on first use.  A failing account is logged and skipped;
    its resources then resolve to the default descriptor.
    """

    def __init__(self, inventory: Optional[InventoryProvider], config: InventoryConfig) -> None:
        self._inventory = inventory
        self._config = config
        self._index: Optional[dict[str, ResourceInfo]] = None

    def resolve(self, resource_id: str) -> ResourceInfo:
        found = self._get_index().get(resource_id)
        if found is not None:
            return found
        logger.debug("Resource %s not found in inventory; using default descriptor.", resource_id)
        return self.default_resource(resource_id)

    def resolve_all(self, resource_ids: Iterable[str]) -> list[ResourceInfo]:
        return [self.resolve(rid) for rid in resource_ids]

    def default_resource(self, resource_id: str) -> ResourceInfo:
        """Descriptor used when the inventory does not know ``resource_id``."""
        return ResourceInfo(
            id=resource_id,
            provider=self._config.default_provider,
            service=self._config.default_service,
            region=self._config.default_region,
            project=self._config.default_project,
            tags={"env": "dev"},
        )

    def _get_index(self) -> dict[str, ResourceInfo]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def _build_index(self) -> dict[str, ResourceInfo]:
        index: dict[str, ResourceInfo] = {}
        if self._inventory is None:
            return index

        try:
            accounts = self._inventory.list_accounts()
        except Exception as exc:
            logger.warning("Could not list inventory accounts: %s", exc)
            return index

        for account in accounts:
            if not account.active:
                continue
            try:
                for resource in self._inventory.list_resources(account):
                    index.setdefault(resource.id, resource)
            except Exception as exc:
                context_logger(logger, account_id=account.account_id).warning(
                    "Skipping account %s during resolution: %s", account.account_id, exc
                )
        return index
