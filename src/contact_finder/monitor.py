"""Scheduled keyword monitoring over saved alerts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import MonitoringError
from .models import Contact, MonitoringAlert, SearchParams, Store
from .orchestrator import ContactSearch

NotifyFn = Callable[[MonitoringAlert, list[Contact]], None]


@dataclass(frozen=True)
class AlertRunResult:
    alert_id: str
    keyword: str
    email: str
    contacts: list[Contact] = field(default_factory=list)

    @property
    def contacts_found(self) -> int:
        return len(self.contacts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alertId": self.alert_id,
            "keyword": self.keyword,
            "email": self.email,
            "contactsFound": self.contacts_found,
            "contacts": [contact.to_dict() for contact in self.contacts],
        }


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_notification(logger: logging.Logger) -> NotifyFn:
    """Default notifier: email delivery is not wired up, so only log."""

    def notify(alert: MonitoringAlert, contacts: list[Contact]) -> None:
        logger.info(
            "Alert %s (%r): %d contacts would be sent to %s",
            alert.id,
            alert.keyword,
            len(contacts),
            alert.email,
        )

    return notify


def run_monitoring(
    store: Store,
    search: ContactSearch,
    logger: logging.Logger,
    *,
    notify: NotifyFn | None = None,
    now: Callable[[], str] = _utc_now,
) -> list[AlertRunResult]:
    """Run every active alert as an unfiltered keyword search."""
    notify = notify or log_notification(logger)
    try:
        alerts = store.get_active_alerts()
    except Exception as exc:
        raise MonitoringError("Failed to read monitoring alerts.") from exc
    if not alerts:
        logger.info("No active alerts")
        return []

    results: list[AlertRunResult] = []
    for alert in alerts:
        params = SearchParams.create(query=alert.keyword)
        contacts = search.run(params)
        try:
            store.update_alert_last_check(alert.id, now())
        except Exception as exc:
            raise MonitoringError(f"Failed to update alert {alert.id}.") from exc
        try:
            notify(alert, contacts)
        except Exception as exc:
            logger.warning("Notification for alert %s failed: %s", alert.id, exc)
        results.append(
            AlertRunResult(
                alert_id=alert.id, keyword=alert.keyword, email=alert.email, contacts=contacts
            )
        )
    logger.info("Monitored %d alerts", len(alerts))
    return results
