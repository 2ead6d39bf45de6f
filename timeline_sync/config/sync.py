"""Tuning knobs for the Facebook → store sync."""

import os
from dataclasses import dataclass


@dataclass
class SyncSettings:
    """
    Work limits for a single sync batch.

    Fields:
        default_limit: Posts requested per Graph API page
        max_limit: Upstream maximum for the `limit` parameter
        default_target_count: Qualifying posts reconciled before a batch stops
        max_pages_per_batch: Page ceiling per batch, bounds outbound calls per invocation
        max_attachment_depth: Deepest attachment nesting level that is walked
        chain_drain_timeout: Seconds a one-shot process waits for chained batches before giving up
    """
    default_limit: int = 25
    max_limit: int = 100
    default_target_count: int = 10
    max_pages_per_batch: int = 20
    max_attachment_depth: int = 8
    chain_drain_timeout: float = 600.0

    def __post_init__(self):
        """Allow the batch size to be overridden from the environment."""
        target = os.environ.get('SYNC_TARGET_COUNT')
        if target:
            self.default_target_count = int(target)


SYNC_SETTINGS = SyncSettings()
