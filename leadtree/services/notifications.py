"""
Notifications — Slack webhook integration for referral rewards.

Notification failure never blocks reward bookkeeping.
"""
import logging
import requests

from leadtree.config import SLACK_WEBHOOK_URL

logger = logging.getLogger('services.notifications')


def notify_reward_granted(reward, inviter=None, invited=None):
    """Post a reward summary to Slack. Returns True when the post succeeded."""
    if not SLACK_WEBHOOK_URL:
        return False

    try:
        fields = [
            {"type": "mrkdwn", "text": f"*Kind:* {reward.kind}"},
            {"type": "mrkdwn", "text": f"*Points:* {reward.points}"},
            {"type": "mrkdwn", "text": f"*Inviter lead:* {reward.received_by_lead_id[:8]}"},
        ]
        if reward.caused_by_lead_id:
            fields.append({"type": "mrkdwn", "text": f"*Invited lead:* {reward.caused_by_lead_id[:8]}"})

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Referral reward granted"},
            },
            {"type": "section", "fields": fields},
        ]

        if inviter is not None and inviter.hash:
            context = f"Hash: `{inviter.hash}`"
            if invited is not None and invited.motivation:
                context += f": _{invited.motivation}_"
            blocks.append({
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": context}],
            })

        resp = requests.post(SLACK_WEBHOOK_URL, json={"blocks": blocks}, timeout=10)
        resp.raise_for_status()
        logger.info("Reward %s notification sent", reward.id[:8])
        return True

    except Exception:
        logger.error("Failed to send notification for reward %s", reward.id[:8], exc_info=True)
        return False
