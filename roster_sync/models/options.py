"""
Per-run option models for player matching and synchronization.

Defaults mirror the production configuration; settings-driven defaults are
built by roster_sync.core.config.default_matching_options() and
default_sync_options().
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from roster_sync.services.sync.exceptions import SyncConfigurationError

WEIGHT_TOLERANCE = 1e-6


class PlayerMatchingOptions(BaseModel):
    """Thresholds and weights for candidate scoring."""

    model_config = ConfigDict(frozen=True)

    minimum_confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    auto_link_confidence_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    manual_review_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    max_alternate_candidates: int = Field(default=5, ge=0)
    enable_phonetic_matching: bool = True
    enable_name_variation_matching: bool = True

    name_match_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    team_match_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    position_match_weight: float = Field(default=0.1, ge=0.0, le=1.0)

    max_workers: int = Field(default=4, ge=1)
    reason_visibility_floor: float = Field(default=0.05, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_weights(self):
        total = self.name_match_weight + self.team_match_weight + self.position_match_weight
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise SyncConfigurationError(
                f"Match weights must sum to 1.0 (got {total:.6f})"
            )
        if self.minimum_confidence_threshold > self.auto_link_confidence_threshold:
            raise SyncConfigurationError(
                "minimum_confidence_threshold cannot exceed auto_link_confidence_threshold"
            )
        return self


class SyncOptions(BaseModel):
    """Options for a single sync run."""

    force_full_sync: bool = False
    skip_inactives: bool = True
    batch_size: int = Field(default=100, ge=1)
    dry_run: bool = False
    max_retries: int = Field(default=3, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    timeout_minutes: int = Field(default=60, ge=1)
    validate_data: bool = True
    skip_invalid_records: bool = True
    create_backup: bool = False
    continue_on_error: bool = True
    player_ids: Optional[List[str]] = None
    team_abbreviations: Optional[List[str]] = None

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0
