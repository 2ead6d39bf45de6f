"""Photo storage configuration."""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass


@dataclass
class StorageConfig:
    """
    Photo blob storage settings.

    Fields:
        photo_dir: Directory the local blob store writes into
        public_base_url: Absolute base for photo URLs (e.g. https://timeline.example.com).
                         When empty, photo URLs are relative (/photos/<key>).
    """

    photo_dir: Optional[Path] = None
    public_base_url: str = ""

    def __post_init__(self):
        """Load settings from environment if not provided."""
        if self.photo_dir is None:
            configured = os.environ.get('PHOTO_STORAGE_DIR')
            self.photo_dir = Path(configured) if configured else Path(__file__).parent.parent.parent.parent / 'data' / 'photos'
        if not self.public_base_url:
            self.public_base_url = os.environ.get('PUBLIC_BASE_URL', '')

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            'photo_dir': str(self.photo_dir),
            'public_base_url': self.public_base_url,
        }


def get_storage_config() -> StorageConfig:
    """Get photo storage configuration."""
    return StorageConfig()
