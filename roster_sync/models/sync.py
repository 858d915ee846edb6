"""
Domain types for player identity matching and roster/stats synchronization.

These are the in-memory shapes that flow between the data source, the
matching engine, the stats combiner and the sync orchestrator. They are
deliberately independent of SQLAlchemy (see models.models for the tables)
and of the ESPN payloads (see services.sync.adapters).

Immutable snapshots (ExternalPlayer, RosterCandidate, MatchResult,
RawStatRecord, CombinedStatRecord, SyncReport) are frozen dataclasses.
SyncResult is the one mutable accumulator: created when a run starts,
mutated as batches complete, and frozen into a SyncReport at the end.
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import uuid


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMERATIONS
# =============================================================================

class MatchMethod(str, Enum):
    """How a match was determined, ordered from strongest to weakest."""
    EXACT_NAME_AND_TEAM = "exact_name_and_team"
    EXACT_NAME_AND_POSITION = "exact_name_and_position"
    FUZZY_NAME_AND_TEAM = "fuzzy_name_and_team"
    PHONETIC_MATCH = "phonetic_match"
    NAME_VARIATION = "name_variation"
    FUZZY_NAME_ONLY = "fuzzy_name_only"
    NONE = "none"
    NO_MATCH = "no_match"
    MANUAL_LINK = "manual_link"


class NameMatchKind(str, Enum):
    """Which name comparison produced the name score."""
    EXACT = "exact"
    NICKNAME = "nickname"
    PHONETIC = "phonetic"
    TOKEN_OVERLAP = "token_overlap"
    NONE = "none"


class PositionUnit(str, Enum):
    """Football unit a position belongs to."""
    OFFENSE = "offense"
    DEFENSE = "defense"
    SPECIAL_TEAMS = "special_teams"
    UNKNOWN = "unknown"


class StatCategory(str, Enum):
    """Per-category stat slices emitted by the provider boxscore."""
    PASSING = "passing"
    RUSHING = "rushing"
    RECEIVING = "receiving"
    DEFENSIVE = "defensive"
    KICKING = "kicking"
    PUNTING = "punting"
    GENERAL = "general"


class SyncType(str, Enum):
    PLAYERS = "players"
    PLAYER_STATS = "player_stats"
    FULL = "full"


class SyncStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PlayerIssueType(str, Enum):
    NO_MATCH = "no_match"
    MULTIPLE_MATCHES = "multiple_matches"
    LOW_CONFIDENCE_MATCH = "low_confidence_match"
    VALIDATION_ERROR = "validation_error"
    INCOMPLETE_DATA = "incomplete_data"


# =============================================================================
# PLAYERS & MATCHING
# =============================================================================

@dataclass(frozen=True)
class ExternalPlayer:
    """A player as reported by the upstream provider for one fetch."""
    external_id: str
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    team_abbreviation: Optional[str] = None
    position: Optional[str] = None
    active: bool = True

    @property
    def full_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or (self.display_name or "")


@dataclass(frozen=True)
class RosterCandidate:
    """An existing roster player; read-only during matching."""
    id: int
    first_name: str = ""
    last_name: str = ""
    team_abbreviation: Optional[str] = None
    position: Optional[str] = None
    active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class MatchCandidate:
    """A scored alternate for a match."""
    candidate_id: int
    name: str
    team: Optional[str]
    position: Optional[str]
    score: float
    reasons: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one external player against the roster."""
    external_id: str
    external_name: str
    matched_candidate_id: Optional[int]
    confidence_score: float
    method: MatchMethod
    reasons: Tuple[str, ...] = ()
    requires_manual_review: bool = True
    alternates: Tuple[MatchCandidate, ...] = ()
    matched_at: datetime = field(default_factory=utcnow)

    @property
    def is_match(self) -> bool:
        return self.matched_candidate_id is not None


@dataclass
class MatchingStatistics:
    """Aggregate view over a set of match results."""
    total: int = 0
    successful_matches: int = 0
    requiring_manual_review: int = 0
    no_matches: int = 0
    method_breakdown: Dict[MatchMethod, int] = field(default_factory=dict)
    average_confidence_score: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.successful_matches / self.total if self.total else 0.0


# =============================================================================
# GAMES & STATS
# =============================================================================

@dataclass(frozen=True)
class GameRef:
    """Reference to one provider game (event)."""
    game_id: str
    season: Optional[int] = None
    week: Optional[int] = None
    game_date: Optional[date] = None
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    completed: bool = False


@dataclass(frozen=True)
class RawStatRecord:
    """One category slice of a player's stats for one game."""
    player_id: str
    game_id: str
    category: StatCategory
    fields: Mapping[str, float] = field(default_factory=dict)
    player_name: str = ""
    team_abbreviation: Optional[str] = None
    position: Optional[str] = None
    season: Optional[int] = None
    week: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.player_id, self.game_id)


@dataclass(frozen=True)
class CombinedStatRecord:
    """Canonical merged stats for one player in one game."""
    player_id: str
    game_id: str
    season: Optional[int] = None
    week: Optional[int] = None
    player_name: str = ""
    team_abbreviation: Optional[str] = None
    position: Optional[str] = None
    categories: Tuple[StatCategory, ...] = ()
    stats: Mapping[str, float] = field(default_factory=dict)
    roster_player_id: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.player_id, self.game_id)

    def as_external_player(self) -> ExternalPlayer:
        """Identity view used to resolve linkage for a stats-only player."""
        parts = (self.player_name or "").split()
        first = parts[0] if parts else ""
        last = " ".join(parts[1:]) if len(parts) > 1 else ""
        return ExternalPlayer(
            external_id=self.player_id,
            first_name=first,
            last_name=last,
            display_name=self.player_name,
            team_abbreviation=self.team_abbreviation,
            position=self.position,
            active=True,
        )


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, error: str):
        """Add an error to the result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning to the result."""
        self.warnings.append(warning)

    def __repr__(self):
        return (f"ValidationResult(valid={self.is_valid}, "
                f"errors={len(self.errors)}, warnings={len(self.warnings)})")


# =============================================================================
# SYNC RESULTS & REPORTS
# =============================================================================

@dataclass
class PlayerSyncIssue:
    """A player-level problem that needs attention after a run."""
    external_id: str
    player_name: str
    issue_type: PlayerIssueType
    description: str
    requires_manual_intervention: bool = True
    alternates: Tuple[MatchCandidate, ...] = ()
    detected_at: datetime = field(default_factory=utcnow)


@dataclass
class SyncResult:
    """
    Mutable accumulator for one sync run.

    Counters are only ever incremented while the run is active; the final
    status is derived from them by determine_sync_status().
    """
    sync_type: SyncType
    status: SyncStatus = SyncStatus.RUNNING
    sync_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None

    records_processed: int = 0
    players_processed: int = 0
    players_updated: int = 0
    new_players_added: int = 0
    stats_records_processed: int = 0
    stats_upserted: int = 0
    records_skipped: int = 0

    matching_errors: int = 0
    data_errors: int = 0
    api_errors: int = 0

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    player_issues: List[PlayerSyncIssue] = field(default_factory=list)
    options: Optional[Dict[str, Any]] = None

    @property
    def total_errors(self) -> int:
        return self.data_errors + self.matching_errors + self.api_errors

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that did not error; 100 when idle."""
        if self.records_processed <= 0:
            return 100.0
        return (self.records_processed - self.total_errors) / self.records_processed * 100

    @property
    def duration(self) -> timedelta:
        if self.end_time is None:
            return timedelta(0)
        return self.end_time - self.start_time

    @property
    def is_successful(self) -> bool:
        return self.status in (SyncStatus.COMPLETED, SyncStatus.COMPLETED_WITH_WARNINGS)

    @property
    def records_per_second(self) -> float:
        seconds = self.duration.total_seconds()
        return self.records_processed / seconds if seconds > 0 else 0.0

    def add_error(self, message: str):
        self.errors.append(message)

    def add_warning(self, message: str):
        self.warnings.append(message)

    def absorb(self, other: "SyncResult"):
        """Fold a sub-run's counters and messages into this result."""
        self.records_processed += other.records_processed
        self.players_processed += other.players_processed
        self.players_updated += other.players_updated
        self.new_players_added += other.new_players_added
        self.stats_records_processed += other.stats_records_processed
        self.stats_upserted += other.stats_upserted
        self.records_skipped += other.records_skipped
        self.matching_errors += other.matching_errors
        self.data_errors += other.data_errors
        self.api_errors += other.api_errors
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.player_issues.extend(other.player_issues)


@dataclass(frozen=True)
class SyncReport:
    """Durable, queryable snapshot of a finished sync run."""
    sync_id: str
    sync_type: SyncType
    status: SyncStatus
    start_time: datetime
    end_time: Optional[datetime]
    records_processed: int
    players_processed: int
    players_updated: int
    new_players_added: int
    stats_records_processed: int
    stats_upserted: int
    records_skipped: int
    matching_errors: int
    data_errors: int
    api_errors: int
    success_rate: float
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    player_issues: Tuple[Dict[str, Any], ...] = ()
    options: Optional[Dict[str, Any]] = None

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncReport":
        issues = tuple(
            {
                "external_id": issue.external_id,
                "player_name": issue.player_name,
                "issue_type": issue.issue_type.value,
                "description": issue.description,
                "requires_manual_intervention": issue.requires_manual_intervention,
                "alternates": [asdict(alt) for alt in issue.alternates],
            }
            for issue in result.player_issues
        )
        return cls(
            sync_id=result.sync_id,
            sync_type=result.sync_type,
            status=result.status,
            start_time=result.start_time,
            end_time=result.end_time,
            records_processed=result.records_processed,
            players_processed=result.players_processed,
            players_updated=result.players_updated,
            new_players_added=result.new_players_added,
            stats_records_processed=result.stats_records_processed,
            stats_upserted=result.stats_upserted,
            records_skipped=result.records_skipped,
            matching_errors=result.matching_errors,
            data_errors=result.data_errors,
            api_errors=result.api_errors,
            success_rate=round(result.success_rate, 2),
            errors=tuple(result.errors),
            warnings=tuple(result.warnings),
            player_issues=issues,
            options=dict(result.options) if result.options else None,
        )

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sync_id": self.sync_id,
            "sync_type": self.sync_type.value,
            "status": self.status.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "records_processed": self.records_processed,
            "players_processed": self.players_processed,
            "players_updated": self.players_updated,
            "new_players_added": self.new_players_added,
            "stats_records_processed": self.stats_records_processed,
            "stats_upserted": self.stats_upserted,
            "records_skipped": self.records_skipped,
            "matching_errors": self.matching_errors,
            "data_errors": self.data_errors,
            "api_errors": self.api_errors,
            "success_rate": self.success_rate,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "player_issues": list(self.player_issues),
        }
