"""
Abuse reports and the admin view of them.

Reports are immutable and never removed. Filing one notifies the
configured admin account (REPORT_RECEIVED).
"""

from typing import List, Optional

from hanger.logging import get_logger, LogStream
from hanger.services.audit import rejections_logged, require_account, require_admin
from hanger.services.notifications import NotificationOutbox
from hanger.state.entities import AbuseReport, NotificationType
from hanger.state.errors import ValidationError
from hanger.state.labels import DEFAULT_LOCALE, render_message
from hanger.state.store import EntityStore


class ModerationDesk:
    """Files abuse reports and serves them to admins."""

    def __init__(
        self,
        store: EntityStore,
        outbox: NotificationOutbox,
        admin_handle: str = "admin",
        locale: str = DEFAULT_LOCALE,
    ):
        self.store = store
        self.outbox = outbox
        self.admin_handle = admin_handle
        self.locale = locale
        self.logger = get_logger(LogStream.MODERATION)

    @rejections_logged(LogStream.MODERATION)
    def file_report(self, reporter: str, reported: str, reason: str) -> AbuseReport:
        """
        Raises:
            NotFoundError: unknown reporter or reported account
            ValidationError: blank reason, or reporting oneself
        """
        require_account(self.store, reporter)
        require_account(self.store, reported)
        if reporter == reported:
            raise ValidationError("Accounts cannot report themselves", reporter=reporter)
        if not reason or not reason.strip():
            raise ValidationError("Report reason must not be blank", field="reason")

        report = AbuseReport(
            report_id=self.store.next_report_id(),
            reporter=reporter,
            reported=reported,
            reason=reason.strip(),
            created_at=self.store.clock.now(),
        )
        self.store.reports[report.report_id] = report

        self.outbox.push(
            self.admin_handle,
            NotificationType.REPORT_RECEIVED,
            render_message(
                "report_received", self.locale,
                reporter=reporter, reported=reported, reason=report.reason,
            ),
        )
        self.store.save()

        self.logger.warning("Abuse report filed", extra={
            "report_id": report.report_id,
            "reporter": reporter,
            "reported": reported,
        })
        return report

    @rejections_logged(LogStream.MODERATION)
    def reports(self, admin: str, reported: Optional[str] = None) -> List[AbuseReport]:
        """
        Reports ordered by id, optionally only those against `reported`.

        Raises:
            NotFoundError: unknown admin handle
            UnauthorizedError: actor is not an admin
        """
        require_admin(self.store, admin)
        return sorted(
            (
                r for r in self.store.reports.values()
                if reported is None or r.reported == reported
            ),
            key=lambda r: r.report_id,
        )
