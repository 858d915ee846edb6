"""ESPN adapter implementing the sync DataSource contract.

Endpoints (site API, football/nfl):
- /teams → team ids and abbreviations
- /teams/{id}/roster → athletes grouped by unit
- /scoreboard?seasontype=2&week=N&dates=YYYY → games of one week
- /scoreboard?dates=YYYYMMDD → games of one day
- /summary?event={id} → boxscore with per-category player stats

Every request is retried with exponential backoff (tenacity) on network
errors, 429 and 5xx responses, and guarded by the ESPN circuit breaker
(pybreaker). Failures surface as TransientProviderError.
"""
import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pybreaker import CircuitBreaker, CircuitBreakerError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from roster_sync.core.circuit_breaker import espn_api_breaker
from roster_sync.core.config import settings
from roster_sync.models.sync import ExternalPlayer, GameRef, RawStatRecord, StatCategory
from roster_sync.services.sync.exceptions import TransientProviderError
from roster_sync.services.sync.interfaces import DataSource
from roster_sync.services.sync.stats.categories import categorize_stat

logger = logging.getLogger(__name__)

REGULAR_SEASON = 2

# Boxscore section -> category
SECTION_CATEGORIES = {
    'passing': StatCategory.PASSING,
    'rushing': StatCategory.RUSHING,
    'receiving': StatCategory.RECEIVING,
    'defensive': StatCategory.DEFENSIVE,
    'interceptions': StatCategory.DEFENSIVE,
    'fumbles': StatCategory.GENERAL,
    'kicking': StatCategory.KICKING,
    'punting': StatCategory.PUNTING,
    'kickReturns': StatCategory.GENERAL,
    'puntReturns': StatCategory.GENERAL,
}

# (section, provider key) -> canonical field name(s)
FIELD_NAMES: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ('passing', 'completions/passingAttempts'): ('passingCompletions', 'passingAttempts'),
    ('passing', 'yardsPerPassAttempt'): ('passingAverage',),
    ('passing', 'interceptions'): ('passingInterceptions',),
    ('passing', 'sacks-sackYardsLost'): ('passingSacks', 'passingSackYardsLost'),
    ('passing', 'adjQBR'): ('passingQBR',),
    ('passing', 'QBRating'): ('passingRating',),
    ('rushing', 'yardsPerRushAttempt'): ('rushingAverage',),
    ('rushing', 'longRushing'): ('rushingLong',),
    ('receiving', 'receptions'): ('receivingReceptions',),
    ('receiving', 'yardsPerReception'): ('receivingAverage',),
    ('receiving', 'longReception'): ('receivingLong',),
    ('interceptions', 'interceptions'): ('defensiveInterceptions',),
    ('fumbles', 'fumblesRecovered'): ('fumbleRecoveries',),
    ('kicking', 'fieldGoalsMade/fieldGoalAttempts'): ('fieldGoalsMade', 'fieldGoalsAttempted'),
    ('kicking', 'fieldGoalPct'): ('fieldGoalPercentage',),
    ('kicking', 'extraPointsMade/extraPointAttempts'): ('extraPointsMade', 'extraPointsAttempted'),
    ('punting', 'puntYards'): ('puntingYards',),
    ('punting', 'grossAvgPuntYards'): ('puntingAverage',),
    ('punting', 'puntsInside20'): ('puntingInside20',),
    ('punting', 'longPunt'): ('puntingLong',),
}


class _RetryableResponse(Exception):
    """429/5xx response worth retrying."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code


def parse_number(text: Any) -> Optional[float]:
    """Parse a boxscore cell ("1,024", "7", "--") into a float."""
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)
    try:
        return float(str(text).replace(',', '').strip())
    except ValueError:
        return None


def _split_pair(value: Any) -> Tuple[Optional[str], Optional[str]]:
    """Split "20/31" or "2-14" into its two halves; a leading minus is a sign."""
    text = str(value).strip()
    for separator in ('/', '-'):
        index = text.find(separator, 1)
        if index > 0:
            return text[:index], text[index + 1:]
    return text, None


def parse_stat_fields(section: str, keys: List[str], values: List[Any]) -> Dict[str, float]:
    """
    Map one athlete's boxscore row onto canonical field names.

    Combined cells ("made/att", "sacks-yards") become two fields.
    Unparseable cells ("--") are dropped.
    """
    fields: Dict[str, float] = {}

    for key, value in zip(keys, values):
        names = FIELD_NAMES.get((section, key))
        if names is None:
            if '/' in key:
                names = tuple(key.split('/', 1))
            elif '-' in key:
                names = tuple(key.split('-', 1))
            else:
                names = (key,)

        if len(names) == 2:
            first, second = _split_pair(value)
            for name, part in zip(names, (first, second)):
                number = parse_number(part)
                if number is not None:
                    fields[name] = number
        else:
            number = parse_number(value)
            if number is not None:
                fields[names[0]] = number

    return fields


class EspnDataSource(DataSource):
    """
    DataSource backed by the ESPN public site API.

    The httpx client is created lazily and can be injected for tests
    (e.g. an AsyncClient over httpx.MockTransport).
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_backoff: float = 1.0,
        request_delay: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None
    ):
        """
        Initialize the ESPN data source.

        Args:
            client: HTTP client (created on first request if omitted)
            base_url: API root (settings.ESPN_API_BASE_URL)
            max_retries: Attempts per request (settings.ESPN_API_MAX_RETRIES)
            retry_backoff: Exponential backoff multiplier in seconds (0 disables waiting)
            request_delay: Pause between per-team roster requests
            breaker: Circuit breaker (shared espn_api_breaker by default)
        """
        self._client = client
        self.base_url = (base_url or settings.ESPN_API_BASE_URL).rstrip('/')
        self.max_retries = max_retries or settings.ESPN_API_MAX_RETRIES
        self.retry_backoff = retry_backoff
        self.request_delay = settings.ESPN_API_REQUEST_DELAY if request_delay is None else request_delay
        self.breaker = breaker or espn_api_breaker

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.ESPN_API_TIMEOUT),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _fetch_once(self, url: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        client = await self._get_client()
        with self.breaker.calling():
            response = await client.get(url, params=params)
            if response.status_code == 429 or response.status_code >= 500:
                raise _RetryableResponse(response.status_code, url)

        # 4xx responses do not count against the breaker
        response.raise_for_status()
        return response.json()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET a JSON document with retries and circuit breaking.

        Raises:
            TransientProviderError: On any failure after retries
        """
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self.retry_backoff, max=10),
                retry=retry_if_exception_type((httpx.TransportError, _RetryableResponse)),
                reraise=True,
            ):
                with attempt:
                    return await self._fetch_once(url, params)

        except CircuitBreakerError as e:
            logger.warning(f"ESPN API circuit breaker is OPEN for {url}")
            raise TransientProviderError(f"ESPN API unavailable (circuit open): {e}") from e
        except _RetryableResponse as e:
            logger.error(f"ESPN API request failed after {self.max_retries} attempts: {e}")
            raise TransientProviderError(str(e), status_code=e.status_code) from e
        except httpx.HTTPStatusError as e:
            logger.error(f"ESPN API returned {e.response.status_code} for {url}")
            raise TransientProviderError(
                f"HTTP {e.response.status_code} from {url}", status_code=e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"ESPN API request to {url} failed: {e}")
            raise TransientProviderError(f"Request to {url} failed: {e}") from e

    # =========================================================================
    # DATASOURCE
    # =========================================================================

    async def ping(self) -> bool:
        try:
            await self._get("teams")
            return True
        except TransientProviderError as e:
            logger.warning(f"ESPN connectivity check failed: {e}")
            return False

    async def fetch_teams(self) -> List[Dict[str, str]]:
        """Team id and abbreviation for every franchise."""
        data = await self._get("teams")
        teams = []
        for sport in data.get('sports', []):
            for league in sport.get('leagues', []):
                for entry in league.get('teams', []):
                    team = entry.get('team', entry)
                    if team.get('id'):
                        teams.append({
                            'id': str(team['id']),
                            'abbreviation': team.get('abbreviation'),
                        })
        return teams

    async def fetch_roster(self) -> List[ExternalPlayer]:
        teams = await self.fetch_teams()
        players: List[ExternalPlayer] = []

        for index, team in enumerate(teams):
            if index > 0 and self.request_delay > 0:
                await asyncio.sleep(self.request_delay)

            data = await self._get(f"teams/{team['id']}/roster")
            abbreviation = (data.get('team') or {}).get('abbreviation') or team['abbreviation']
            players.extend(self._parse_roster(data, abbreviation))

        logger.info(f"Fetched {len(players)} players from {len(teams)} ESPN rosters")
        return players

    @staticmethod
    def _parse_roster(data: Dict[str, Any], team_abbreviation: Optional[str]) -> List[ExternalPlayer]:
        players = []
        for group in data.get('athletes', []):
            # grouped ({position, items}) or flat athlete list
            items = group.get('items') if isinstance(group, dict) and 'items' in group else [group]
            for athlete in items:
                if not athlete.get('id'):
                    continue
                status = ((athlete.get('status') or {}).get('type') or '').lower()
                players.append(ExternalPlayer(
                    external_id=str(athlete['id']),
                    first_name=athlete.get('firstName', ''),
                    last_name=athlete.get('lastName', ''),
                    display_name=athlete.get('displayName') or athlete.get('fullName', ''),
                    team_abbreviation=team_abbreviation,
                    position=(athlete.get('position') or {}).get('abbreviation'),
                    active=status in ('', 'active'),
                ))
        return players

    async def fetch_games_for_week(self, season: int, week: int) -> List[GameRef]:
        data = await self._get(
            "scoreboard",
            params={'seasontype': REGULAR_SEASON, 'week': week, 'dates': season},
        )
        return self._parse_scoreboard(data, season=season, week=week)

    async def fetch_games_for_date(self, day: date) -> List[GameRef]:
        data = await self._get("scoreboard", params={'dates': day.strftime('%Y%m%d')})
        return self._parse_scoreboard(data)

    @staticmethod
    def _parse_scoreboard(
        data: Dict[str, Any],
        season: Optional[int] = None,
        week: Optional[int] = None
    ) -> List[GameRef]:
        games = []
        for event in data.get('events', []):
            competition = (event.get('competitions') or [{}])[0]
            teams = {
                c.get('homeAway'): (c.get('team') or {}).get('abbreviation')
                for c in competition.get('competitors', [])
            }
            status_type = ((event.get('status') or competition.get('status') or {}).get('type') or {})

            game_date = None
            if event.get('date'):
                try:
                    game_date = datetime.fromisoformat(event['date'].replace('Z', '+00:00')).date()
                except ValueError:
                    logger.debug(f"Unparseable event date {event['date']!r}")

            games.append(GameRef(
                game_id=str(event['id']),
                season=(event.get('season') or {}).get('year', season),
                week=(event.get('week') or {}).get('number', week),
                game_date=game_date,
                home_team=teams.get('home'),
                away_team=teams.get('away'),
                completed=bool(status_type.get('completed', False)),
            ))
        return games

    async def fetch_raw_stats(self, game_id: str) -> List[RawStatRecord]:
        data = await self._get("summary", params={'event': game_id})
        return self.parse_boxscore(game_id, data)

    @staticmethod
    def parse_boxscore(game_id: str, data: Dict[str, Any]) -> List[RawStatRecord]:
        """Turn a game summary into one RawStatRecord per (athlete, section)."""
        header = data.get('header') or {}
        season = (header.get('season') or {}).get('year')
        week = header.get('week')

        records = []
        for team_block in (data.get('boxscore') or {}).get('players', []):
            team_abbreviation = (team_block.get('team') or {}).get('abbreviation')

            for section in team_block.get('statistics', []):
                name = section.get('name', '')
                category = SECTION_CATEGORIES.get(name) or categorize_stat(name)
                keys = section.get('keys', [])

                for entry in section.get('athletes', []):
                    athlete = entry.get('athlete') or {}
                    if not athlete.get('id'):
                        continue
                    records.append(RawStatRecord(
                        player_id=str(athlete['id']),
                        game_id=str(game_id),
                        category=category,
                        fields=parse_stat_fields(name, keys, entry.get('stats', [])),
                        player_name=athlete.get('displayName', ''),
                        team_abbreviation=team_abbreviation,
                        position=(athlete.get('position') or {}).get('abbreviation'),
                        season=season,
                        week=week,
                    ))

        logger.debug(f"Parsed {len(records)} stat slices for game {game_id}")
        return records
