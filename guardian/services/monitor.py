"""
Contract Monitor Service

Keeps contract status current with two repeating jobs:
- security checks (default every 30 minutes): is the contract still
  deployed, and do its recent events look abnormal?
- AI analysis (default every 2 hours): LLM review of each contract's code,
  matched against known vulnerability keywords.

In live mode a third job polls the chain for new event logs.

Every failure inside a check is logged or turned into an alert; nothing
raised here stops the loops.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from guardian.models import AlertCreate, AlertSeverity, Contract, ContractStatus
from guardian.repositories import GuardianStorage
from guardian.services.analysis import AnalysisService
from guardian.services.blockchain import BlockchainService
from guardian.services.indicators import (
    classify_event_severity,
    escalated_status,
    is_suspicious,
    match_contract_indicator,
)
from guardian.services.scheduler import BackgroundScheduler

logger = structlog.get_logger(__name__)

RECENT_EVENT_WINDOW = 10
BURST_EVENT_NAMES = frozenset({"BadgeClaim", "AlertSubmitted"})
BURST_THRESHOLD = 3
EVENT_SUMMARY_CHARS = 200

SECURITY_CHECK_TASK = "security_checks"
AI_ANALYSIS_TASK = "ai_analysis"
EVENT_POLL_TASK = "event_poll"


class MonitorService:
    """Owns the scheduler and the per-contract checks it runs."""

    def __init__(
        self,
        storage: GuardianStorage,
        blockchain: BlockchainService,
        analysis: AnalysisService,
        security_check_interval_seconds: float = 30 * 60,
        ai_analysis_interval_seconds: float = 2 * 60 * 60,
        event_poll_interval_seconds: float = 15.0,
    ):
        self._storage = storage
        self._blockchain = blockchain
        self._analysis = analysis
        self._security_interval = security_check_interval_seconds
        self._ai_interval = ai_analysis_interval_seconds
        self._poll_interval = event_poll_interval_seconds
        self._scheduler: BackgroundScheduler | None = None
        self._running = False
        self._started_at: datetime | None = None
        # Serializes start/stop so overlapping calls cannot build two schedulers
        self._lifecycle_lock = asyncio.Lock()

    def is_active(self) -> bool:
        return self._running

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _build_scheduler(self) -> BackgroundScheduler:
        scheduler = BackgroundScheduler()
        scheduler.register(
            SECURITY_CHECK_TASK,
            self.run_security_checks,
            interval_seconds=self._security_interval,
        )
        scheduler.register(
            AI_ANALYSIS_TASK,
            self.run_ai_analysis,
            interval_seconds=self._ai_interval,
        )
        if not self._blockchain.is_demo_mode:
            scheduler.register(
                EVENT_POLL_TASK,
                self._blockchain.poll_events,
                interval_seconds=self._poll_interval,
            )
        return scheduler

    async def start(self) -> bool:
        """
        Start monitoring. Returns True if running afterwards.

        The first security check runs before this returns; both loops then
        wait one full interval before their next run.
        """
        async with self._lifecycle_lock:
            return await self._start()

    async def _start(self) -> bool:
        if self._running:
            logger.info("monitor_already_running")
            return True

        try:
            if not await self._blockchain.initialize():
                logger.error("monitor_start_failed", reason="blockchain_initialization_failed")
                return False

            ai_ready = await self._analysis.initialize()
            logger.info("ai_service_probe", result="SUCCESS" if ai_ready else "FAILED")

            self._running = True
            self._started_at = datetime.now(UTC)
            self._scheduler = self._build_scheduler()
            await self._scheduler.start()

            await self.run_security_checks()
        except Exception as e:  # start() reports failure through its return value
            logger.exception("monitor_start_failed", error=str(e))
            await self._teardown()
            return False

        logger.info(
            "monitor_started",
            security_interval_seconds=self._security_interval,
            ai_interval_seconds=self._ai_interval,
            demo_mode=self._blockchain.is_demo_mode,
        )
        return True

    async def _teardown(self) -> None:
        self._running = False
        if self._scheduler is not None:
            await self._scheduler.stop()

    async def stop(self) -> None:
        """Stop both loops. Safe to call when already stopped."""
        async with self._lifecycle_lock:
            was_running = self._running
            await self._teardown()
        if was_running:
            logger.info("monitor_stopped")

    def get_status(self) -> dict[str, Any]:
        return {
            "active": self._running,
            "startedAt": self._started_at.isoformat() if self._started_at and self._running else None,
            "demoMode": self._blockchain.is_demo_mode,
            "scheduler": self._scheduler.get_stats() if self._scheduler else None,
        }

    def task_names(self) -> list[str]:
        """Jobs of the running scheduler; empty while stopped."""
        if not self._running or self._scheduler is None:
            return []
        return self._scheduler.task_names

    async def run_task_now(self, name: str) -> bool:
        """Run one job outside its loop. False while stopped or if the job failed."""
        if not self._running or self._scheduler is None:
            return False
        return await self._scheduler.run_task_now(name)

    def reset_task(self, name: str) -> bool:
        """Clear a job's failure count, restarting it if it was auto-disabled."""
        if not self._running or self._scheduler is None:
            return False
        return self._scheduler.reset_task(name)

    # =========================================================================
    # Alerts
    # =========================================================================

    async def _create_alert(
        self,
        contract: Contract,
        severity: AlertSeverity,
        title: str,
        description: str,
        ai_analysis: str | None = None,
    ) -> None:
        try:
            await self._storage.create_alert(
                AlertCreate(
                    contract_id=contract.id,
                    severity=severity,
                    title=title,
                    description=description,
                    ai_analysis=ai_analysis,
                )
            )
        except Exception as e:  # An alert that cannot be stored must not break the check
            logger.error("alert_create_failed", contract=contract.name, title=title, error=str(e))
            return
        logger.info("alert_created", contract=contract.name, severity=severity.value, title=title)

    async def _escalate(self, contract_id: int, severity: AlertSeverity) -> None:
        # Re-read: an earlier step in the same check may have changed status
        current = await self._storage.get_contract(contract_id)
        if current is None:
            return
        new_status = escalated_status(current.status, severity)
        if new_status is not None:
            await self._storage.update_contract_status(contract_id, new_status)

    # =========================================================================
    # Security checks
    # =========================================================================

    async def run_security_checks(self) -> None:
        if not self._running:
            return

        logger.info("security_checks_starting")
        for contract in await self._storage.get_contracts():
            await self.check_contract_health(contract)
        logger.info("security_checks_complete")

    async def check_contract_health(self, contract: Contract) -> None:
        """Check deployment status and recent event pattern for one contract."""
        try:
            code = await self._blockchain.get_contract_code(contract.address)
            if not code or code == "0x":
                await self._create_alert(
                    contract,
                    AlertSeverity.HIGH,
                    "Contract unavailable",
                    f"The contract at {contract.address} is unavailable or self-destructed.",
                )
                await self._storage.update_contract_status(contract.id, ContractStatus.ALERT)
                return

            recent = await self._storage.get_events_by_contract(contract.id, RECENT_EVENT_WINDOW)
            if not recent:
                await self._storage.update_contract_status(contract.id, ContractStatus.HEALTHY)
                return

            burst = [e for e in recent if e.event_name in BURST_EVENT_NAMES]
            if len(burst) >= BURST_THRESHOLD:
                await self._create_alert(
                    contract,
                    AlertSeverity.MEDIUM,
                    "Unusual event pattern detected",
                    f"Multiple {recent[0].event_name} events detected in a short time period.",
                )
                await self._storage.update_contract_status(contract.id, ContractStatus.WARNING)
        except Exception as e:  # Recorded as a LOW alert on the contract
            logger.error("contract_health_check_failed", contract=contract.name, error=str(e))
            await self._create_alert(
                contract,
                AlertSeverity.LOW,
                "Error monitoring contract",
                f"Failed to monitor contract: {e}",
            )

    # =========================================================================
    # AI analysis
    # =========================================================================

    async def run_ai_analysis(self) -> None:
        if not self._running:
            return

        if not await self._analysis.is_within_usage_limit():
            logger.warning("ai_analysis_skipped", reason="token_limit_reached")
            return

        logger.info("ai_analysis_starting")
        for contract in await self._storage.get_contracts():
            await self.analyze_contract_with_ai(contract)
        logger.info("ai_analysis_complete")

    async def analyze_contract_with_ai(self, contract: Contract) -> None:
        """Run an LLM review and raise at most one alert from its text."""
        try:
            code = await self._blockchain.get_contract_code(contract.address)
            if not code or code == "0x":
                logger.warning("ai_analysis_no_code", contract=contract.name)
                return

            analysis, _tokens = await self._analysis.analyze_contract(contract, code)

            indicator = match_contract_indicator(analysis)
            if indicator is None:
                return

            await self._create_alert(
                contract,
                indicator.severity,
                indicator.title,
                analysis,
                ai_analysis=analysis,
            )
            await self._escalate(contract.id, indicator.severity)
        except Exception as e:  # One contract's failure must not stop the sweep
            logger.error("ai_contract_analysis_failed", contract=contract.name, error=str(e))

    async def analyze_event(self, contract_id: int, event_id: int) -> None:
        """LLM review of one stored event; alerts if the text reads as suspicious."""
        try:
            contract = await self._storage.get_contract(contract_id)
            if contract is None:
                logger.warning("analyze_event_contract_missing", contract_id=contract_id)
                return

            event = await self._storage.get_event(event_id)
            if event is None or event.contract_id != contract_id:
                logger.warning("analyze_event_event_missing", event_id=event_id)
                return

            analysis, _tokens = await self._analysis.analyze_event(
                contract, event.event_name, event.event_data
            )
            if not is_suspicious(analysis):
                return

            severity = classify_event_severity(analysis)
            await self._create_alert(
                contract,
                severity,
                f"Suspicious activity in {event.event_name} event",
                "AI detected potentially suspicious activity: "
                f"{analysis[:EVENT_SUMMARY_CHARS]}...",
                ai_analysis=analysis,
            )
            await self._escalate(contract.id, severity)
        except Exception as e:  # Logged only; callers fire and forget
            logger.error("ai_event_analysis_failed", event_id=event_id, error=str(e))

    async def scan_contract(self, address: str) -> bool:
        """Health check plus AI analysis for one address. False if unknown."""
        contract = await self._storage.get_contract_by_address(address)
        if contract is None:
            logger.warning("scan_contract_not_found", address=address)
            return False

        await self.check_contract_health(contract)
        # Health check may have changed status; analyze the fresh record
        contract = await self._storage.get_contract(contract.id) or contract
        await self.analyze_contract_with_ai(contract)
        return True
