"""Player matcher for linking provider players to roster players.

Scores an external player against every roster candidate and picks the
best one:

1. Score each candidate (name, team, position; see confidence_scorer)
2. Sort by score, ties broken by candidate id
3. Derive the match method from the winning factors
4. Apply thresholds:
   - below minimum_confidence_threshold → no match
   - below auto_link_confidence_threshold, or a runner-up within
     manual_review_threshold → requires manual review
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from roster_sync.models.options import PlayerMatchingOptions
from roster_sync.models.sync import (
    ExternalPlayer, MatchCandidate, MatchingStatistics, MatchMethod,
    MatchResult, NameMatchKind, RosterCandidate, utcnow
)
from roster_sync.services.sync.exceptions import MatchingAmbiguityError
from roster_sync.services.sync.interfaces import Persistence
from roster_sync.services.sync.utils.confidence_scorer import (
    CandidateScore, score_candidate
)

logger = logging.getLogger(__name__)


def determine_match_method(score: CandidateScore) -> MatchMethod:
    """
    Map the winning candidate's factor breakdown to a MatchMethod.

    Ranked: exact name + team > exact name + position > fuzzy name + team
    > phonetic > nickname variation > fuzzy name only > none.
    """
    if score.name_score <= 0:
        return MatchMethod.NONE

    exact = score.name_match_kind == NameMatchKind.EXACT

    if exact and score.team_score == 1.0:
        return MatchMethod.EXACT_NAME_AND_TEAM
    if exact and score.position_score == 1.0:
        return MatchMethod.EXACT_NAME_AND_POSITION
    if not exact and score.team_score == 1.0:
        return MatchMethod.FUZZY_NAME_AND_TEAM
    if score.name_match_kind == NameMatchKind.PHONETIC:
        return MatchMethod.PHONETIC_MATCH
    if score.name_match_kind == NameMatchKind.NICKNAME:
        return MatchMethod.NAME_VARIATION

    return MatchMethod.FUZZY_NAME_ONLY


class PlayerMatcher:
    """
    Resolve provider players to roster candidates.

    Matching itself is pure; only link_manually touches persistence.
    """

    def __init__(
        self,
        options: Optional[PlayerMatchingOptions] = None,
        persistence: Optional[Persistence] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize the player matcher.

        Args:
            options: Thresholds and weights (defaults when omitted)
            persistence: Store used by link_manually
            clock: Source of matched_at timestamps
        """
        self.options = options or PlayerMatchingOptions()
        self.persistence = persistence
        self.clock = clock

    def match(
        self,
        external: ExternalPlayer,
        candidates: Sequence[RosterCandidate],
        matched_at: Optional[datetime] = None
    ) -> MatchResult:
        """
        Match one external player against the candidate set.

        Never raises for an empty candidate set; that is a NO_MATCH.

        Args:
            external: Player from the provider
            candidates: Active roster players
            matched_at: Timestamp to stamp on the result (clock() if omitted)

        Returns:
            MatchResult
        """
        matched_at = matched_at or self.clock()
        opts = self.options

        if not candidates:
            return MatchResult(
                external_id=external.external_id,
                external_name=external.full_name,
                matched_candidate_id=None,
                confidence_score=0.0,
                method=MatchMethod.NO_MATCH,
                reasons=("No candidates available",),
                requires_manual_review=True,
                alternates=(),
                matched_at=matched_at,
            )

        scored: List[Tuple[RosterCandidate, CandidateScore]] = [
            (candidate, score_candidate(external, candidate, opts))
            for candidate in candidates
        ]
        scored.sort(key=lambda pair: (-pair[1].score, str(pair[0].id)))

        best_candidate, best = scored[0]
        second_score = scored[1][1].score if len(scored) > 1 else None

        requires_review = best.score < opts.auto_link_confidence_threshold
        if second_score is not None and best.score - second_score < opts.manual_review_threshold:
            requires_review = True

        alternates = tuple(
            MatchCandidate(
                candidate_id=candidate.id,
                name=candidate.full_name,
                team=candidate.team_abbreviation,
                position=candidate.position,
                score=score.score,
                reasons=score.reasons,
            )
            for candidate, score in scored[1:]
            if score.score > 0
        )[:opts.max_alternate_candidates]

        if best.score < opts.minimum_confidence_threshold:
            logger.debug(
                f"No match for {external.full_name} ({external.external_id}): "
                f"best score {best.score:.3f}"
            )
            return MatchResult(
                external_id=external.external_id,
                external_name=external.full_name,
                matched_candidate_id=None,
                confidence_score=best.score,
                method=MatchMethod.NO_MATCH,
                reasons=best.reasons,
                requires_manual_review=requires_review,
                alternates=alternates,
                matched_at=matched_at,
            )

        method = determine_match_method(best)

        logger.debug(
            f"Matched {external.full_name} ({external.external_id}) -> "
            f"{best_candidate.full_name} ({best_candidate.id}) "
            f"score={best.score:.3f} method={method.value} review={requires_review}"
        )

        return MatchResult(
            external_id=external.external_id,
            external_name=external.full_name,
            matched_candidate_id=best_candidate.id,
            confidence_score=best.score,
            method=method,
            reasons=best.reasons,
            requires_manual_review=requires_review,
            alternates=alternates,
            matched_at=matched_at,
        )

    def batch_match(
        self,
        externals: Sequence[ExternalPlayer],
        candidates: Sequence[RosterCandidate]
    ) -> List[MatchResult]:
        """
        Match many external players against the same candidate set.

        Chunks run on a bounded thread pool; each worker collects
        (index, result) pairs locally and the pairs are merged in input
        order after all workers finish, so the output is identical for
        any max_workers.

        Args:
            externals: Players from the provider
            candidates: Active roster players (read-only)

        Returns:
            One MatchResult per external, in input order
        """
        externals = list(externals)
        candidates = tuple(candidates)
        if not externals:
            return []

        matched_at = self.clock()
        workers = min(self.options.max_workers, len(externals))

        if workers <= 1:
            return [self.match(e, candidates, matched_at) for e in externals]

        chunk_size = -(-len(externals) // workers)
        chunks = [
            list(enumerate(externals))[start:start + chunk_size]
            for start in range(0, len(externals), chunk_size)
        ]

        def run_chunk(chunk: List[Tuple[int, ExternalPlayer]]) -> List[Tuple[int, MatchResult]]:
            local = []
            for index, external in chunk:
                local.append((index, self.match(external, candidates, matched_at)))
            return local

        with ThreadPoolExecutor(max_workers=workers) as executor:
            partials = list(executor.map(run_chunk, chunks))

        merged = [pair for partial in partials for pair in partial]
        merged.sort(key=lambda pair: pair[0])

        logger.info(
            f"Batch matched {len(externals)} players against "
            f"{len(candidates)} candidates ({workers} workers)"
        )
        return [result for _, result in merged]

    async def link_manually(
        self,
        candidate_id: int,
        external_id: str,
        player: Optional[ExternalPlayer] = None
    ) -> MatchResult:
        """
        Explicitly link a roster player to an external id.

        Args:
            candidate_id: Roster player id
            external_id: Provider player id
            player: Provider snapshot used to refresh linkage fields

        Returns:
            MatchResult with method MANUAL_LINK and confidence 1.0

        Raises:
            ValueError: If either id is empty
            MatchingAmbiguityError: If the store refuses the link
        """
        if candidate_id is None or (isinstance(candidate_id, int) and candidate_id <= 0):
            raise ValueError("candidate_id is required")
        if not external_id or not str(external_id).strip():
            raise ValueError("external_id is required")
        if self.persistence is None:
            raise MatchingAmbiguityError("No persistence configured for manual linking")

        player = player or ExternalPlayer(external_id=str(external_id))

        linked = await self.persistence.update_linkage(candidate_id, player)
        if not linked:
            raise MatchingAmbiguityError(
                f"Could not link candidate {candidate_id} to external id {external_id}"
            )

        logger.info(f"Manually linked candidate {candidate_id} to external id {external_id}")

        return MatchResult(
            external_id=str(external_id),
            external_name=player.full_name,
            matched_candidate_id=candidate_id,
            confidence_score=1.0,
            method=MatchMethod.MANUAL_LINK,
            reasons=("Manual link",),
            requires_manual_review=False,
            alternates=(),
            matched_at=self.clock(),
        )

    @staticmethod
    def summarize(results: Sequence[MatchResult]) -> MatchingStatistics:
        """
        Aggregate statistics over a set of match results.

        Average confidence covers successful matches only.
        """
        stats = MatchingStatistics(total=len(results))
        breakdown: Dict[MatchMethod, int] = {}
        matched_scores = []

        for result in results:
            breakdown[result.method] = breakdown.get(result.method, 0) + 1
            if result.is_match:
                stats.successful_matches += 1
                matched_scores.append(result.confidence_score)
            else:
                stats.no_matches += 1
            if result.requires_manual_review:
                stats.requiring_manual_review += 1

        stats.method_breakdown = breakdown
        if matched_scores:
            stats.average_confidence_score = sum(matched_scores) / len(matched_scores)

        return stats
