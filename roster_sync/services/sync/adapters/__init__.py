"""Data source adapters for the sync orchestrator.

Available adapters:
- espn_adapter: ESPN site API (rosters, scoreboards, boxscores)
"""
from roster_sync.services.sync.adapters.espn_adapter import EspnDataSource

__all__ = ["EspnDataSource"]
