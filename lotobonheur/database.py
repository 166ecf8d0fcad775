import sqlite3
import json
import os
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from lotobonheur.algorithms.models import DrawRecord, PredictionResult
from lotobonheur.config import PROJECT_ROOT, get_config
from lotobonheur.draw_schedule import DRAW_SCHEDULE, canonical_draw_name

WINNING_COLUMNS = ['n1', 'n2', 'n3', 'n4', 'n5']
MACHINE_COLUMNS = ['m1', 'm2', 'm3', 'm4', 'm5']


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that understands numpy scalars and arrays."""

    def default(self, o):
        if isinstance(o, np.integer):
            return int(o)
        elif isinstance(o, np.floating):
            return float(o)
        elif isinstance(o, np.ndarray):
            return o.tolist()
        elif isinstance(o, (date, datetime)):
            return o.isoformat()
        return super(NumpyEncoder, self).default(o)


def _dumps(data: Any) -> Optional[str]:
    return json.dumps(data, cls=NumpyEncoder) if data is not None else None


def get_db_path() -> str:
    """Reads the database file path from the configuration (LOTO_DB_PATH wins)."""
    env_path = os.getenv('LOTO_DB_PATH')
    if env_path:
        db_path = env_path
    else:
        config = get_config()
        db_file = config.get('paths', 'database_file', fallback='data/lotobonheur.db')
        db_path = db_file if os.path.isabs(db_file) else os.path.join(PROJECT_ROOT, db_file)

    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return db_path


def get_db_connection() -> sqlite3.Connection:
    """
    Establishes a connection to the SQLite database.

    Raises:
        sqlite3.Error: If database connection fails
    """
    db_path = get_db_path()
    try:
        conn = sqlite3.connect(db_path, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        conn.execute("PRAGMA foreign_keys=ON")
        logger.debug(f"Connected to database at {db_path}")
        return conn
    except sqlite3.Error as e:
        logger.error(f"Error connecting to database at {db_path}: {e}")
        raise


def initialize_database():
    """Create all tables and indexes and seed the draw schedule. Idempotent."""
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            _create_core_tables(cursor)
            _create_prediction_tables(cursor)
            _create_indexes(cursor)
            _seed_draw_schedules(cursor)
            conn.commit()
        logger.info("Database initialized successfully with all tables and indexes.")
    except sqlite3.Error as e:
        logger.error(f"Database error during initialization: {e}")
        raise


def _create_core_tables(cursor):
    number_checks = ",\n".join(
        f"CHECK ({col} BETWEEN 1 AND 90)" for col in WINNING_COLUMNS
    )
    machine_checks = ",\n".join(
        f"CHECK ({col} IS NULL OR {col} BETWEEN 1 AND 90)" for col in MACHINE_COLUMNS
    )
    cursor.execute(f"""
        CREATE TABLE IF NOT EXISTS draw_results (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            draw_name TEXT NOT NULL,
            draw_date TEXT NOT NULL,
            n1 INTEGER NOT NULL,
            n2 INTEGER NOT NULL,
            n3 INTEGER NOT NULL,
            n4 INTEGER NOT NULL,
            n5 INTEGER NOT NULL,
            m1 INTEGER,
            m2 INTEGER,
            m3 INTEGER,
            m4 INTEGER,
            m5 INTEGER,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            {number_checks},
            {machine_checks},
            UNIQUE(draw_date, draw_name)
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS draw_schedules (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            day_of_week TEXT NOT NULL,
            draw_name TEXT NOT NULL,
            time TEXT NOT NULL CHECK (time GLOB '[0-2][0-9]:[0-5][0-9]'),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(day_of_week, time)
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            actor TEXT NOT NULL DEFAULT 'system',
            action TEXT NOT NULL,
            table_name TEXT NOT NULL,
            record_id INTEGER,
            old_data TEXT,
            new_data TEXT,
            timestamp TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """)


def _create_prediction_tables(cursor):
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS prediction_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            draw_name TEXT NOT NULL,
            algorithm TEXT NOT NULL,
            category TEXT NOT NULL,
            n1 INTEGER NOT NULL,
            n2 INTEGER NOT NULL,
            n3 INTEGER NOT NULL,
            n4 INTEGER NOT NULL,
            n5 INTEGER NOT NULL,
            confidence REAL NOT NULL,
            rank_score REAL,
            color_strategy TEXT,
            group_distribution TEXT,
            target_date TEXT,
            predicted_at TEXT DEFAULT CURRENT_TIMESTAMP,
            validated INTEGER DEFAULT 0,
            validated_at TEXT,
            actual_numbers TEXT,
            total_score REAL,
            grade TEXT,
            score_breakdown TEXT
        )
    """)


def _create_indexes(cursor):
    indexes = [
        "CREATE INDEX IF NOT EXISTS idx_draw_results_name ON draw_results(draw_name)",
        "CREATE INDEX IF NOT EXISTS idx_draw_results_date ON draw_results(draw_date DESC)",
        "CREATE INDEX IF NOT EXISTS idx_draw_results_name_date ON draw_results(draw_name, draw_date DESC)",
        "CREATE INDEX IF NOT EXISTS idx_draw_schedules_day ON draw_schedules(day_of_week)",
        "CREATE INDEX IF NOT EXISTS idx_prediction_history_algorithm ON prediction_history(algorithm)",
        "CREATE INDEX IF NOT EXISTS idx_prediction_history_pending ON prediction_history(validated, draw_name)",
        "CREATE INDEX IF NOT EXISTS idx_audit_logs_timestamp ON audit_logs(timestamp DESC)",
    ]
    for statement in indexes:
        cursor.execute(statement)


def _seed_draw_schedules(cursor):
    cursor.executemany(
        "INSERT OR IGNORE INTO draw_schedules (day_of_week, draw_name, time) VALUES (?, ?, ?)",
        [(slot.day_of_week, slot.draw_name, slot.time) for slot in DRAW_SCHEDULE],
    )


# --- Draw results ---

def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()


def validate_draw_date(draw_date: date) -> None:
    """Raises ValueError for draw dates in the future."""
    if draw_date > date.today():
        raise ValueError(f"Draw date {draw_date.isoformat()} is in the future")


def row_to_draw_record(row: Dict[str, Any]) -> Optional[DrawRecord]:
    """Build a DrawRecord from a draw_results row, or None when the row is malformed."""
    try:
        machine = [row[c] for c in MACHINE_COLUMNS if row.get(c) is not None]
        return DrawRecord.from_values(
            draw_name=row['draw_name'],
            draw_date=_parse_date(row['draw_date']),
            winning_numbers=[row[c] for c in WINNING_COLUMNS],
            machine_numbers=machine or None,
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Skipping malformed draw row {row.get('id')}: {e}")
        return None


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    data = dict(row)
    data['winning_numbers'] = [data.pop(c) for c in WINNING_COLUMNS]
    machine = [data.pop(c) for c in MACHINE_COLUMNS]
    data['machine_numbers'] = [m for m in machine if m is not None] or None
    return data


def _record_params(record: DrawRecord) -> tuple:
    machine = list(record.machine_numbers or [])
    machine += [None] * (len(MACHINE_COLUMNS) - len(machine))
    return (canonical_draw_name(record.draw_name), record.draw_date.isoformat(), *record.winning_numbers, *machine)


def insert_draw_result(record: DrawRecord) -> Optional[int]:
    """Insert one draw. Returns the new id, or None on constraint violation or error."""
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                INSERT INTO draw_results (draw_name, draw_date, {', '.join(WINNING_COLUMNS)}, {', '.join(MACHINE_COLUMNS)})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                _record_params(record),
            )
            conn.commit()
            logger.info(f"Inserted draw {record.draw_name} {record.draw_date} (id={cursor.lastrowid})")
            return cursor.lastrowid
    except sqlite3.IntegrityError as e:
        logger.warning(f"Draw {record.draw_name} {record.draw_date} rejected: {e}")
        return None
    except sqlite3.Error as e:
        logger.error(f"Failed to insert draw {record.draw_name} {record.draw_date}: {e}")
        return None


def upsert_draw_results(records: Iterable[DrawRecord]) -> int:
    """
    Insert or update draws keyed on (draw_date, draw_name).

    Returns:
        Number of rows written
    """
    records = list(records)
    if not records:
        logger.info("No draws to upsert.")
        return 0

    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            for record in records:
                cursor.execute(
                    f"""
                    INSERT INTO draw_results (draw_name, draw_date, {', '.join(WINNING_COLUMNS)}, {', '.join(MACHINE_COLUMNS)})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(draw_date, draw_name) DO UPDATE SET
                        n1 = excluded.n1, n2 = excluded.n2, n3 = excluded.n3,
                        n4 = excluded.n4, n5 = excluded.n5,
                        m1 = excluded.m1, m2 = excluded.m2, m3 = excluded.m3,
                        m4 = excluded.m4, m5 = excluded.m5,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    _record_params(record),
                )
            conn.commit()
            logger.info(f"Successfully upserted {len(records)} draws.")
            return len(records)
    except sqlite3.Error as e:
        logger.error(f"SQLite error during upsert: {e}")
        return 0


def get_draw_result(result_id: int) -> Optional[Dict[str, Any]]:
    try:
        with get_db_connection() as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute("SELECT * FROM draw_results WHERE id = ?", (result_id,)).fetchone()
            return _row_to_dict(row) if row else None
    except sqlite3.Error as e:
        logger.error(f"Failed to get draw result {result_id}: {e}")
        return None


def update_draw_result(result_id: int, record: DrawRecord) -> bool:
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE draw_results
                SET draw_name = ?, draw_date = ?,
                    {', '.join(f'{c} = ?' for c in WINNING_COLUMNS + MACHINE_COLUMNS)},
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (*_record_params(record), result_id),
            )
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.IntegrityError as e:
        logger.warning(f"Update of draw result {result_id} rejected: {e}")
        return False
    except sqlite3.Error as e:
        logger.error(f"Failed to update draw result {result_id}: {e}")
        return False


def delete_draw_result(result_id: int) -> bool:
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM draw_results WHERE id = ?", (result_id,))
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Failed to delete draw result {result_id}: {e}")
        return False


def get_draw_results(draw_name: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
    """Newest-first draw rows as dicts, optionally for a single draw name."""
    query = "SELECT * FROM draw_results"
    params: List[Any] = []
    if draw_name:
        query += " WHERE draw_name = ?"
        params.append(canonical_draw_name(draw_name))
    query += " ORDER BY draw_date DESC, id DESC LIMIT ? OFFSET ?"
    params.extend([limit, offset])

    try:
        with get_db_connection() as conn:
            conn.row_factory = sqlite3.Row
            return [_row_to_dict(row) for row in conn.execute(query, params).fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to list draw results: {e}")
        return []


def count_draw_results(draw_name: Optional[str] = None) -> int:
    try:
        with get_db_connection() as conn:
            if draw_name:
                row = conn.execute("SELECT COUNT(*) FROM draw_results WHERE draw_name = ?",
                                   (canonical_draw_name(draw_name),)).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) FROM draw_results").fetchone()
            return row[0] if row else 0
    except sqlite3.Error as e:
        logger.error(f"Failed to count draw results: {e}")
        return 0


def get_latest_draw_date(draw_name: Optional[str] = None) -> Optional[str]:
    try:
        with get_db_connection() as conn:
            if draw_name:
                row = conn.execute("SELECT MAX(draw_date) FROM draw_results WHERE draw_name = ?",
                                   (canonical_draw_name(draw_name),)).fetchone()
            else:
                row = conn.execute("SELECT MAX(draw_date) FROM draw_results").fetchone()
            return row[0] if row else None
    except sqlite3.Error as e:
        logger.error(f"Failed to get latest draw date: {e}")
        return None


def get_draws_df(draw_name: Optional[str] = None, max_date: Optional[str] = None) -> pd.DataFrame:
    """
    Draw history as a DataFrame, newest first.

    Args:
        draw_name: Restrict to one draw name
        max_date: Only draws strictly before this date (YYYY-MM-DD)
    """
    query = "SELECT * FROM draw_results"
    clauses, params = [], []
    if draw_name:
        clauses.append("draw_name = ?")
        params.append(canonical_draw_name(draw_name))
    if max_date:
        clauses.append("draw_date < ?")
        params.append(max_date)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY draw_date DESC, id DESC"

    try:
        with get_db_connection() as conn:
            df = pd.read_sql_query(query, conn, params=params)
            logger.debug(f"Loaded {len(df)} draw rows (draw_name={draw_name}, max_date={max_date})")
            return df
    except sqlite3.Error as e:
        logger.error(f"SQLite error retrieving draws data: {e}")
        return pd.DataFrame()
    except pd.errors.DatabaseError as e:
        logger.error(f"Pandas database error: {e}")
        return pd.DataFrame()


def get_history(draw_name: Optional[str], limit: Optional[int] = None,
                max_date: Optional[str] = None) -> List[DrawRecord]:
    """Newest-first DrawRecords with malformed rows filtered out."""
    df = get_draws_df(draw_name=draw_name, max_date=max_date)
    if df.empty:
        return []
    if limit is not None:
        df = df.head(limit)

    records = []
    for row in df.to_dict(orient='records'):
        clean = {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in row.items()}
        record = row_to_draw_record(clean)
        if record is not None:
            records.append(record)
    return records


def get_draw_schedules() -> List[Dict[str, Any]]:
    try:
        with get_db_connection() as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("SELECT day_of_week, draw_name, time FROM draw_schedules ORDER BY id").fetchall()
            return [dict(row) for row in rows]
    except sqlite3.Error as e:
        logger.error(f"Failed to read draw schedules: {e}")
        return []


# --- Audit log ---

def add_audit_log(action: str, table_name: str, record_id: Optional[int] = None,
                  old_data: Optional[Dict[str, Any]] = None, new_data: Optional[Dict[str, Any]] = None,
                  actor: str = 'system') -> Optional[int]:
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO audit_logs (actor, action, table_name, record_id, old_data, new_data)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (actor, action, table_name, record_id, _dumps(old_data), _dumps(new_data)),
            )
            conn.commit()
            return cursor.lastrowid
    except sqlite3.Error as e:
        logger.error(f"Failed to write audit log ({action} on {table_name}): {e}")
        return None


def get_audit_logs(limit: int = 100, table_name: Optional[str] = None) -> List[Dict[str, Any]]:
    query = "SELECT * FROM audit_logs"
    params: List[Any] = []
    if table_name:
        query += " WHERE table_name = ?"
        params.append(table_name)
    query += " ORDER BY id DESC LIMIT ?"
    params.append(limit)

    try:
        with get_db_connection() as conn:
            conn.row_factory = sqlite3.Row
            logs = []
            for row in conn.execute(query, params).fetchall():
                entry = dict(row)
                for key in ('old_data', 'new_data'):
                    entry[key] = json.loads(entry[key]) if entry[key] else None
                logs.append(entry)
            return logs
    except sqlite3.Error as e:
        logger.error(f"Failed to read audit logs: {e}")
        return []


# --- Prediction history ---

def save_prediction(prediction: PredictionResult, draw_name: str, target_date: Optional[str] = None) -> Optional[int]:
    details = prediction.details or {}
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO prediction_history (
                    draw_name, algorithm, category, n1, n2, n3, n4, n5,
                    confidence, rank_score, color_strategy, group_distribution, target_date
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    canonical_draw_name(draw_name),
                    prediction.algorithm_name,
                    prediction.category.value,
                    *prediction.numbers,
                    prediction.confidence,
                    prediction.rank_score,
                    details.get('color_strategy'),
                    _dumps(details.get('group_distribution')),
                    target_date,
                ),
            )
            conn.commit()
            logger.info(f"Saved prediction {cursor.lastrowid} ({prediction.algorithm_name}) for {draw_name}")
            return cursor.lastrowid
    except sqlite3.Error as e:
        logger.error(f"Failed to save prediction for {draw_name}: {e}")
        return None


def _prediction_row(row: sqlite3.Row) -> Dict[str, Any]:
    data = dict(row)
    data['numbers'] = [data.pop(c) for c in WINNING_COLUMNS]
    for key in ('group_distribution', 'actual_numbers', 'score_breakdown'):
        data[key] = json.loads(data[key]) if data.get(key) else None
    data['validated'] = bool(data.get('validated'))
    return data


def get_predictions(validated: Optional[bool] = None, draw_name: Optional[str] = None,
                    algorithm: Optional[str] = None, limit: int = 500) -> List[Dict[str, Any]]:
    clauses, params = [], []
    if validated is not None:
        clauses.append("validated = ?")
        params.append(1 if validated else 0)
    if draw_name:
        clauses.append("draw_name = ?")
        params.append(canonical_draw_name(draw_name))
    if algorithm:
        clauses.append("algorithm = ?")
        params.append(algorithm)
    query = "SELECT * FROM prediction_history"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY id ASC LIMIT ?"
    params.append(limit)

    try:
        with get_db_connection() as conn:
            conn.row_factory = sqlite3.Row
            return [_prediction_row(row) for row in conn.execute(query, params).fetchall()]
    except sqlite3.Error as e:
        logger.error(f"Failed to read predictions: {e}")
        return []


def mark_prediction_validated(prediction_id: int, actual_numbers: List[int], total_score: float,
                              grade: str, breakdown: Dict[str, Any]) -> bool:
    try:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE prediction_history
                SET validated = 1, validated_at = CURRENT_TIMESTAMP,
                    actual_numbers = ?, total_score = ?, grade = ?, score_breakdown = ?
                WHERE id = ?
                """,
                (_dumps(list(actual_numbers)), total_score, grade, _dumps(breakdown), prediction_id),
            )
            conn.commit()
            return cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Failed to mark prediction {prediction_id} as validated: {e}")
        return False
