"""
Slack notification job for raised anomaly alerts.

After an anomaly scan the API schedules this job as a background task. It
posts the alerts that have not been announced yet to a Slack incoming webhook
using the WebhookClient from slack-sdk.

Idempotency:
- Every alert id successfully posted is remembered by the AlertDigest
  instance (one per application, kept on ``app.state.alert_digest``).
- Alerts already announced are filtered out before sending, so re-running a
  scan that raises nothing new sends nothing.
- Ids are remembered in-process only; a restart forgets them together with
  the in-memory alert ledger itself.

Environment Requirements:
- SLACK_WEBHOOK_URL: Slack incoming webhook URL.
  Format: https://hooks.slack.com/services/xxx/yyy/zzz
  When unset the job is a no-op that reports success=False.

Usage:
    digest = AlertDigest()
    result = digest.send(raised_alerts)
    if not result['success']:
        logger.warning(result['error'])
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set

from slack_sdk.webhook import WebhookClient

from agency_metrics.core.config import Settings, get_settings
from agency_metrics.models import Alert, AlertSeverity


logger = logging.getLogger(__name__)

SEVERITY_EMOJI = {
    AlertSeverity.HIGH: ":red_circle:",
    AlertSeverity.MED: ":large_orange_circle:",
}


# =============================================================================
# Message formatting
# =============================================================================

def format_alert_line(alert: Alert) -> str:
    """One mrkdwn bullet: severity marker, title and creation instant."""
    emoji = SEVERITY_EMOJI.get(alert.severity, ":white_circle:")
    return f"{emoji} *{alert.severity.value.upper()}* {alert.title} _({alert.createdAt})_"


def format_slack_message(alerts: Sequence[Alert], sent_at: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Format alerts into Slack Block Kit blocks.

    The message has a header with the alert count, one section listing every
    alert (high severity first, scan order otherwise) and a context footer
    with the send time.

    Returns:
        List of Block Kit block dicts ready to send via WebhookClient.
    """
    sent_at = sent_at or datetime.now(timezone.utc)
    ordered = sorted(alerts, key=lambda alert: 0 if alert.severity is AlertSeverity.HIGH else 1)
    high_count = sum(1 for alert in alerts if alert.severity is AlertSeverity.HIGH)

    noun = "alert" if len(alerts) == 1 else "alerts"
    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"Metrics anomaly scan: {len(alerts)} new {noun}",
                "emoji": True,
            },
        },
        {"type": "divider"},
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": "\n".join(format_alert_line(alert) for alert in ordered),
            },
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": f"{high_count} high severity | sent {sent_at.strftime('%Y-%m-%d %H:%M UTC')}",
                }
            ],
        },
    ]
    return blocks


# =============================================================================
# Notifier
# =============================================================================

class AlertDigest:
    """
    Posts not-yet-announced alerts to Slack and remembers what it posted.

    Args:
        settings: Source of slack_webhook_url; the cached settings by default.
        client: Pre-built WebhookClient, mostly for tests. Built from the
            configured URL on first use otherwise.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[WebhookClient] = None) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._notified: Set[str] = set()
        self._lock = threading.Lock()

    def pending(self, alerts: Sequence[Alert]) -> List[Alert]:
        """Alerts whose id has not been announced yet, in the given order."""
        with self._lock:
            return [alert for alert in alerts if alert.id not in self._notified]

    def mark_notified(self, alerts: Sequence[Alert]) -> None:
        with self._lock:
            self._notified.update(alert.id for alert in alerts)

    def _get_client(self) -> WebhookClient:
        if self._client is None:
            self._client = WebhookClient(self.settings.slack_webhook_url)
        return self._client

    def send(self, alerts: Sequence[Alert]) -> Dict[str, Any]:
        """
        Send a digest of the alerts that were not announced before.

        Synchronous: WebhookClient.send blocks, so when scheduled as a
        background task Starlette runs this in its threadpool.

        Returns:
            Dict with:
            - success: True if the digest was sent or skipped appropriately
            - skipped: True if there was nothing new to send
            - reason: Reason for skip (if skipped)
            - sent: Number of alerts announced (if sent)
            - error: Error message (if failed)

        Raises:
            No exceptions are raised - all errors are captured in the return dict.
        """
        if not self.settings.slack_webhook_url and self._client is None:
            return {
                'success': False,
                'error': 'SLACK_WEBHOOK_URL not configured. Set this environment variable to enable alert notifications.'
            }

        new_alerts = self.pending(alerts)
        if not new_alerts:
            return {
                'success': True,
                'skipped': True,
                'reason': 'No new alerts to notify',
            }

        blocks = format_slack_message(new_alerts)
        fallback_text = f"{len(new_alerts)} new metrics alerts"

        try:
            response = self._get_client().send(text=fallback_text, blocks=blocks)
        except Exception as e:
            logger.error(f"Failed to send Slack alert digest: {e}")
            return {
                'success': False,
                'error': f'Failed to send Slack message: {str(e)}',
            }

        if response.status_code != 200:
            logger.error(f"Slack webhook returned {response.status_code}: {response.body}")
            return {
                'success': False,
                'error': f'Slack API returned status {response.status_code}: {response.body}',
            }

        self.mark_notified(new_alerts)
        logger.info(f"Sent Slack digest with {len(new_alerts)} alerts")
        return {
            'success': True,
            'sent': len(new_alerts),
        }
