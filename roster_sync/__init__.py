"""NFL roster and player stats synchronization service."""
