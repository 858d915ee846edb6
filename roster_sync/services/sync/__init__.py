"""
NFL Roster Sync Service

Synchronizes ESPN rosters and per-game player stats into the roster database.

Key components:
- Matchers: Confidence-scored player identity matching
- Stats: Combination and validation of per-category boxscore slices
- Adapters: ESPN data source
- Orchestrator: Single-run sync coordination, batching and reporting
"""
