"""Webflow CMS configuration."""

import os
from typing import Dict, Any
from dataclasses import dataclass


@dataclass
class WebflowConfig:
    """Webflow CMS configuration settings."""

    # API configuration
    base_url: str = "https://api.webflow.com/v2"
    timeout: float = 30.0

    # Collection and authentication
    site_id: str = ""
    collection_id: str = ""
    api_token: str = ""

    def __post_init__(self):
        """Load settings from environment if not provided."""
        if not self.site_id:
            self.site_id = os.environ.get('WEBFLOW_SITE_ID', '')
        if not self.collection_id:
            self.collection_id = os.environ.get('WEBFLOW_COLLECTION_ID', '')
        if not self.api_token:
            self.api_token = os.environ.get('WEBFLOW_API_TOKEN', '')

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            'base_url': self.base_url,
            'site_id': self.site_id,
            'collection_id': self.collection_id,
            'api_token': self.api_token,
            'timeout': self.timeout,
        }

    def validate(self) -> bool:
        """Validate the configuration."""
        if not self.collection_id:
            raise ValueError("WEBFLOW_COLLECTION_ID environment variable is required")
        if not self.api_token:
            raise ValueError("WEBFLOW_API_TOKEN environment variable is required")
        return True


def get_webflow_config() -> WebflowConfig:
    """Get Webflow configuration with validation."""
    config = WebflowConfig()
    config.validate()
    return config
