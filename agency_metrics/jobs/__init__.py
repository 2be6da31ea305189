"""
Background jobs for the Agency Metrics backend.

- alert_digest: Slack notification of newly raised anomaly alerts, scheduled
  as a FastAPI background task after each scan.

Environment Requirements:
- SLACK_WEBHOOK_URL: Slack incoming webhook URL in format
  https://hooks.slack.com/services/xxx/yyy/zzz

Dependencies:
- slack-sdk (Slack webhook client)

Usage:
    from agency_metrics.jobs import AlertDigest

    digest = AlertDigest()
    result = digest.send(alerts)
"""

from agency_metrics.jobs.alert_digest import AlertDigest, format_slack_message, format_alert_line

__all__ = [
    'AlertDigest',
    'format_slack_message',
    'format_alert_line',
]
