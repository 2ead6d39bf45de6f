"""Facebook Graph API configuration."""

import os
from typing import Dict, Any
from dataclasses import dataclass


@dataclass
class FacebookConfig:
    """Facebook Graph API configuration settings."""

    # API configuration
    graph_base_url: str = "https://graph.facebook.com"
    api_version: str = ""
    timeout: float = 30.0

    # Page and authentication
    page_id: str = ""
    page_access_token: str = ""

    def __post_init__(self):
        """Load settings from environment if not provided."""
        if not self.api_version:
            self.api_version = os.environ.get('FB_GRAPH_API_VERSION', 'v24.0')
        if not self.page_id:
            self.page_id = os.environ.get('FB_PAGE_ID', '')
        if not self.page_access_token:
            self.page_access_token = os.environ.get('FB_PAGE_ACCESS_TOKEN', '')

    @property
    def base_url(self) -> str:
        """Versioned Graph API root, e.g. https://graph.facebook.com/v24.0"""
        return f"{self.graph_base_url.rstrip('/')}/{self.api_version}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            'base_url': self.base_url,
            'page_id': self.page_id,
            'page_access_token': self.page_access_token,
            'timeout': self.timeout,
        }

    def validate(self) -> bool:
        """Validate the configuration."""
        if not self.page_id:
            raise ValueError("FB_PAGE_ID environment variable is required")
        if not self.page_access_token:
            raise ValueError("FB_PAGE_ACCESS_TOKEN environment variable is required")
        return True


def get_facebook_config() -> FacebookConfig:
    """Get Facebook configuration with validation."""
    config = FacebookConfig()
    config.validate()
    return config
