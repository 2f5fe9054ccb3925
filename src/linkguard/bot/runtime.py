"""Wiring of the moderation core for one bot process."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from linkguard.configuration.app_configuration import ModerationConfig
from linkguard.gateway.interface import ModerationGateway
from linkguard.moderation.cooldown_ledger import CooldownLedger
from linkguard.moderation.sweep import SweepCoordinator
from linkguard.scheduler.cooldown_scheduler import CooldownSweepScheduler
from linkguard.scheduler.retraction_scheduler import RetractionScheduler
from linkguard.services.link_moderation_service import LinkModerationService, monotonic_ms


@dataclass
class BotRuntime:
    """Everything the cogs share: config, ledger, services, and background schedulers."""

    config: ModerationConfig
    ledger: CooldownLedger
    moderation: LinkModerationService
    sweeper: SweepCoordinator
    retractions: RetractionScheduler
    cooldown_scheduler: CooldownSweepScheduler

    @classmethod
    def build(
        cls,
        gateway: ModerationGateway,
        config: ModerationConfig,
        *,
        clock: Callable[[], int] = monotonic_ms,
    ) -> BotRuntime:
        ledger = CooldownLedger(config.warning_cooldown_ms)
        retractions = RetractionScheduler(gateway)
        return cls(
            config=config,
            ledger=ledger,
            moderation=LinkModerationService(gateway, config, ledger, retractions, clock=clock),
            sweeper=SweepCoordinator(gateway, config),
            retractions=retractions,
            cooldown_scheduler=CooldownSweepScheduler(ledger, config.cooldown_sweep_interval_seconds, clock),
        )

    async def shutdown(self) -> None:
        """Stop background work. Pending warning retractions lapse."""
        await self.cooldown_scheduler.shutdown()
        await self.retractions.shutdown()
