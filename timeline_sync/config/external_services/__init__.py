"""External service configurations."""

from .facebook import (
    FacebookConfig,
    get_facebook_config
)

from .webflow import (
    WebflowConfig,
    get_webflow_config
)

from .storage import (
    StorageConfig,
    get_storage_config
)

from .webhook import (
    WebhookConfig,
    verify_webhook_token
)

__all__ = [
    'FacebookConfig',
    'get_facebook_config',
    'WebflowConfig',
    'get_webflow_config',
    'StorageConfig',
    'get_storage_config',
    'WebhookConfig',
    'verify_webhook_token'
]
