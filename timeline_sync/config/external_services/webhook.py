"""Webhook trigger configuration."""

import hmac
import os
from typing import Optional
from dataclasses import dataclass


@dataclass
class WebhookConfig:
    """Shared secret used by the Facebook webhook handshake and trigger."""

    secret: str = ""

    def __post_init__(self):
        """Load secret from environment if not provided."""
        if not self.secret:
            self.secret = os.environ.get('WEBHOOK_SECRET', '')

    @property
    def is_configured(self) -> bool:
        return bool(self.secret)


def verify_webhook_token(token: Optional[str], config: Optional[WebhookConfig] = None) -> bool:
    """Check a token against the configured webhook secret."""
    config = config or WebhookConfig()
    if not config.is_configured or not token:
        return False
    return hmac.compare_digest(token, config.secret)
