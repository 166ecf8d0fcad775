import re
import time
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

import lotobonheur.database as db
from lotobonheur.algorithms.models import DrawRecord
from lotobonheur.config import get_int_setting, get_setting
from lotobonheur.draw_schedule import normalize_draw_name

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}

NUMBER_PATTERN = re.compile(r"\d+")


# ============================================================================
# ERRORS
# ============================================================================

class LoaderError(Exception):
    """Base class for results loading failures."""


class NetworkError(LoaderError):
    """The results endpoint could not be reached or answered with an HTTP error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ParsingError(LoaderError):
    """The payload could not be interpreted (bad JSON, bad dates)."""


class ResultsValidationError(LoaderError):
    """The payload was well-formed but reported failure or held no usable draws."""


@dataclass
class SyncReport:
    """Outcome of a fetch + store cycle."""
    fetched: int
    stored: int
    skipped: int
    month: Optional[str] = None
    duration_ms: int = 0
    draw_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)


# ============================================================================
# FETCH + PARSE
# ============================================================================

def _results_url() -> str:
    return get_setting('loader', 'results_url', fallback='https://lotobonheur.ci/api/results')


def _request_results(month: Optional[str], session: Optional[requests.Session]) -> Dict[str, Any]:
    http = session or requests.Session()
    headers = dict(DEFAULT_HEADERS)
    headers["Referer"] = get_setting('loader', 'referer', fallback='https://lotobonheur.ci/resultats')
    timeout = get_int_setting('loader', 'timeout', 10)

    try:
        response = http.get(_results_url(), params={"month": month} if month else {},
                            headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise NetworkError(f"HTTP error {status} from results API", status=status) from e
    except requests.exceptions.Timeout as e:
        raise NetworkError(f"Results API timed out after {timeout}s") from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Results API request failed: {e}") from e

    try:
        return response.json()
    except ValueError as e:
        raise ParsingError(f"Results API returned invalid JSON: {e}") from e


def _parse_week_start(value: Any) -> date:
    try:
        return datetime.strptime(str(value), "%d/%m/%Y").date()
    except ValueError as e:
        raise ParsingError(f"Invalid week start date: {value!r}") from e


def _parse_draw_date(daily_label: str, week_start: date) -> date:
    """
    'Lundi 05/08' in the week starting 05/08/2024 -> date(2024, 8, 5).

    A week starting in December can hold January draws; those belong to
    the following year.
    """
    try:
        day_month = daily_label.split()[-1]
        month = int(day_month.split("/")[1])
        year = week_start.year + 1 if month < week_start.month else week_start.year
        return datetime.strptime(f"{day_month}/{year}", "%d/%m/%Y").date()
    except (ValueError, IndexError) as e:
        raise ParsingError(f"Invalid draw date: {daily_label!r}") from e


def parse_results_payload(payload: Dict[str, Any]) -> List[DrawRecord]:
    """
    Turn a results API payload into DrawRecords.

    Unknown draw names and unpublished results (winning numbers starting
    with ".") are skipped silently; draws without 5 valid winning numbers or
    dated in the future are skipped with a warning. Machine numbers are kept
    only when exactly 5 are present.

    Raises:
        ResultsValidationError: if the payload reports failure
        ParsingError: if the payload structure or dates cannot be read
    """
    if not isinstance(payload, dict) or not payload.get("success"):
        raise ResultsValidationError("Results API reported an unsuccessful response")

    records: List[DrawRecord] = []
    today = date.today()
    try:
        weeks = payload["drawsResultsWeekly"]
        for week in weeks:
            week_start = _parse_week_start(week["startDate"])
            for daily in week["drawResultsDaily"]:
                draw_date = _parse_draw_date(daily["date"], week_start)
                for draw in daily["drawResults"]["standardDraws"]:
                    draw_name = normalize_draw_name(draw.get("drawName"))
                    winning_raw = str(draw.get("winningNumbers") or "")
                    if draw_name is None or winning_raw.startswith("."):
                        continue

                    winning = [int(n) for n in NUMBER_PATTERN.findall(winning_raw)][:5]
                    machine = [int(n) for n in NUMBER_PATTERN.findall(str(draw.get("machineNumbers") or ""))][:5]

                    if draw_date > today:
                        logger.warning(f"Skipping {draw_name} dated in the future ({draw_date})")
                        continue
                    try:
                        records.append(DrawRecord.from_values(
                            draw_name=draw_name,
                            draw_date=draw_date,
                            winning_numbers=winning,
                            machine_numbers=machine if len(machine) == 5 else None,
                        ))
                    except ValueError as e:
                        logger.warning(f"Skipping incomplete draw {draw_name} on {draw_date}: {e}")
    except (KeyError, TypeError, IndexError) as e:
        raise ParsingError(f"Unexpected results payload structure: {e}") from e

    return records


def fetch_lottery_results(month: Optional[str] = None,
                          session: Optional[requests.Session] = None) -> List[DrawRecord]:
    """
    Fetch and parse results from the public results API.

    Args:
        month: Optional month filter understood by the API (e.g. "2024-08")
        session: Optional requests session (injected in tests)

    Raises:
        NetworkError, ParsingError, ResultsValidationError
    """
    logger.info(f"Fetching Loto Bonheur results (month={month or 'latest'})")
    payload = _request_results(month, session)
    records = parse_results_payload(payload)
    if not records:
        raise ResultsValidationError("No valid draw results found for the requested period")
    logger.info(f"Fetched {len(records)} draw results")
    return records


def sync_results(month: Optional[str] = None, session: Optional[requests.Session] = None) -> SyncReport:
    """Fetch results and upsert them into the database."""
    start = time.time()
    records = fetch_lottery_results(month=month, session=session)
    stored = db.upsert_draw_results(records)
    report = SyncReport(
        fetched=len(records),
        stored=stored,
        skipped=len(records) - stored,
        month=month,
        duration_ms=int((time.time() - start) * 1000),
        draw_names=sorted({r.draw_name for r in records}),
    )
    db.add_audit_log('sync', 'draw_results', new_data=report.to_dict(), actor='loader')
    logger.info(f"Results sync complete: {report.stored}/{report.fetched} stored in {report.duration_ms}ms")
    return report
