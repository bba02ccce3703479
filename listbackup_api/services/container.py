"""Collaborator wiring.

The store and external clients are built once at process entry and handed
to the app; handlers receive them through ``Depends(get_services)``.
"""

from dataclasses import dataclass

from fastapi import Request

from listbackup_api.config.settings import Settings
from listbackup_api.services.objects import ObjectStorage
from listbackup_api.services.payments import PaymentsProvider, StripeClient
from listbackup_api.store.base import KeyValueStore
from listbackup_api.store.schema import resolved_index_sort_keys, resolved_key_schema


@dataclass
class Services:
    settings: Settings
    store: KeyValueStore
    payments: PaymentsProvider
    objects: ObjectStorage

    async def close(self) -> None:
        await self.payments.close()


def build_store(settings: Settings) -> KeyValueStore:
    backend = settings.store_backend

    if backend == "memory":
        from listbackup_api.store.memory import MemoryStore
        return MemoryStore(resolved_key_schema(settings), resolved_index_sort_keys(settings))

    if backend == "dynamodb":
        # Lazy import keeps boto3 off the import path for the memory backend
        from listbackup_api.store.dynamodb import DynamoDBStore
        return DynamoDBStore(region=settings.aws_region)

    raise ValueError(f"Unknown store backend: {backend}")


def build_services(settings: Settings) -> Services:
    return Services(
        settings=settings,
        store=build_store(settings),
        payments=StripeClient(
            secret_key=settings.stripe_secret_key,
            api_base=settings.stripe_api_base,
            timeout=settings.stripe_timeout_seconds,
        ),
        objects=ObjectStorage(region=settings.aws_region),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
