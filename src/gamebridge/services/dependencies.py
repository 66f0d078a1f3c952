"""Service wiring and FastAPI dependencies.

One ServiceContainer is built per process in the application lifespan and
stored on ``app.state``; endpoints receive its parts through Depends.
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from gamebridge import __version__
from gamebridge.core.config import Settings
from gamebridge.infrastructure.blockchain.client import ChainClient, Web3ChainClient
from gamebridge.infrastructure.blockchain.contracts import get_abi_loader
from gamebridge.infrastructure.blockchain.events import EventParser
from gamebridge.infrastructure.blockchain.transaction import load_signer
from gamebridge.services.event_listener.subscriber import EventSubscriber, SubscriberConfig
from gamebridge.services.health.checker import (
    HealthChecker,
    chain_check,
    signer_check,
    subscriber_check,
)
from gamebridge.services.leaderboard.store import LeaderboardStore
from gamebridge.services.matches.orchestrator import TransactionOrchestrator
from gamebridge.services.purchase.builder import UnsignedTxBuilder

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Process-wide service instances."""

    settings: Settings
    client: ChainClient
    store: LeaderboardStore
    orchestrator: TransactionOrchestrator
    purchase_builder: UnsignedTxBuilder
    subscriber: EventSubscriber | None
    health: HealthChecker


def build_services(settings: Settings, client: ChainClient | None = None) -> ServiceContainer:
    """Construct all services from settings.

    Args:
        settings: Application settings
        client: Chain client (a Web3ChainClient on ``rpc_url`` if None)

    Returns:
        Wired ServiceContainer
    """
    client = client or Web3ChainClient(
        rpc_url=settings.rpc_url,
        chain_id=settings.chain_id,
        request_timeout=settings.rpc_timeout,
        gas_limit_multiplier=settings.gas_limit_multiplier,
        confirmation_timeout=settings.confirmation_timeout,
        confirmation_poll_interval=settings.confirmation_poll_interval,
    )
    abi_loader = get_abi_loader(settings.abi_dir)

    signer = load_signer(settings.private_key)
    if signer is None:
        logger.warning("PRIVATE_KEY not set. Match start/result endpoints will fail.")

    store = LeaderboardStore()
    orchestrator = TransactionOrchestrator(
        client=client,
        playgame_address=settings.playgame_address,
        signer=signer,
        abi=abi_loader.playgame_abi,
        stake_decimals=settings.game_token_decimals,
        confirmation_timeout=settings.confirmation_timeout,
        poll_interval=settings.confirmation_poll_interval,
    )
    purchase_builder = UnsignedTxBuilder(
        settings.tokenstore_address, abi=abi_loader.tokenstore_abi
    )

    subscriber = None
    if settings.event_listener_enabled:
        subscriber = EventSubscriber(
            client=client,
            store=store,
            config=SubscriberConfig(
                contract_address=settings.playgame_address,
                poll_interval=settings.event_poll_interval,
                queue_size=settings.event_queue_size,
                reconnect_delay=settings.reconnect_delay,
                max_reconnect_delay=settings.max_reconnect_delay,
            ),
            parser=EventParser(abi_loader.playgame_abi),
        )

    health = HealthChecker(version=__version__)
    health.register_check("chain", chain_check(client))
    health.register_check("signer", signer_check(orchestrator))
    health.register_check("event_listener", subscriber_check(subscriber))

    return ServiceContainer(
        settings=settings,
        client=client,
        store=store,
        orchestrator=orchestrator,
        purchase_builder=purchase_builder,
        subscriber=subscriber,
        health=health,
    )


def get_services(request: Request) -> ServiceContainer:
    """Get the process-wide service container."""
    return request.app.state.services


Services = Annotated[ServiceContainer, Depends(get_services)]


def get_leaderboard_store(services: Services) -> LeaderboardStore:
    return services.store


def get_orchestrator(services: Services) -> TransactionOrchestrator:
    return services.orchestrator


def get_purchase_builder(services: Services) -> UnsignedTxBuilder:
    return services.purchase_builder


def get_health_checker(services: Services) -> HealthChecker:
    return services.health
