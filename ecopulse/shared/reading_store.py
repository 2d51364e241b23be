"""SQLite store for consumption readings and persisted forecasts.

Timestamps are stored as UTC ISO-8601 text so that ``substr(timestamp, 1, 10)``
is the calendar date used for daily aggregation.
Uses WAL mode for concurrent reads while the forecast cycle writes.
"""

import asyncio
import os
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime

import aiosqlite

from ecopulse.engine.schema import DailyAggregate, Forecast, ForecastActual, Reading
from ecopulse.shared.errors import StoreUnavailableError

DEFAULT_QUERY_TIMEOUT = 300.0


def to_utc(ts: datetime) -> datetime:
    """Normalize a timestamp to aware UTC. Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _iso(ts: datetime) -> str:
    return to_utc(ts).isoformat()


def _reading(row) -> Reading:
    return Reading(
        building_id=row["building_id"],
        timestamp=to_utc(datetime.fromisoformat(row["timestamp"])),
        energy=row["energy"],
        water=row["water"],
    )


def _forecast(row) -> Forecast:
    return Forecast(
        building_id=row["building_id"],
        date=date.fromisoformat(row["date"]),
        predicted_energy=row["energy"],
        predicted_water=row["water"],
    )


class ReadingStore:
    """Async SQLite store for readings and forecasts."""

    def __init__(self, db_path: str, query_timeout: float = DEFAULT_QUERY_TIMEOUT):
        self.db_path = db_path
        self.query_timeout = query_timeout
        self._conn: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Create database, enable WAL mode, and ensure schema exists."""
        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)

        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA busy_timeout=5000")

        await self._conn.execute("""
            CREATE TABLE IF NOT EXISTS readings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                building_id TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                energy REAL NOT NULL,
                water REAL NOT NULL
            )
        """)
        await self._conn.execute("""
            CREATE TABLE IF NOT EXISTS forecasts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                building_id TEXT NOT NULL,
                date TEXT NOT NULL,
                energy REAL NOT NULL,
                water REAL NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        await self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_readings_building_ts ON readings(building_id, timestamp)"
        )
        await self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_forecasts_building_date ON forecasts(building_id, date)"
        )
        await self._conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @asynccontextmanager
    async def _op(self, name: str):
        """Bound a store call by the query timeout and map failures to StoreUnavailableError."""
        if not self._conn:
            raise RuntimeError("ReadingStore not initialized")
        try:
            async with asyncio.timeout(self.query_timeout):
                yield self._conn
        except TimeoutError as e:
            raise StoreUnavailableError(f"{name} timed out after {self.query_timeout}s") from e
        except aiosqlite.Error as e:
            raise StoreUnavailableError(f"{name} failed: {e}") from e

    # ── Write methods ───────────────────────────────────────────────────

    async def insert_reading(self, reading: Reading) -> None:
        await self.insert_readings([reading])

    async def insert_readings(self, readings: list[Reading]) -> None:
        """Bulk insert readings."""
        if not readings:
            return
        async with self._op("insert_readings") as conn:
            await conn.executemany(
                "INSERT INTO readings (building_id, timestamp, energy, water) VALUES (?, ?, ?, ?)",
                [(r.building_id, _iso(r.timestamp), r.energy, r.water) for r in readings],
            )
            await conn.commit()

    async def insert_forecast(self, forecast: Forecast) -> None:
        """Append a forecast row. Earlier forecasts for the same date are kept."""
        async with self._op("insert_forecast") as conn:
            await conn.execute(
                "INSERT INTO forecasts (building_id, date, energy, water, created_at) VALUES (?, ?, ?, ?, ?)",
                (
                    forecast.building_id,
                    forecast.date.isoformat(),
                    forecast.predicted_energy,
                    forecast.predicted_water,
                    datetime.now(tz=UTC).isoformat(),
                ),
            )
            await conn.commit()

    # ── Read methods ────────────────────────────────────────────────────

    async def list_building_ids(self) -> set[str]:
        """Distinct building identifiers present in the readings table."""
        async with self._op("list_building_ids") as conn:
            cursor = await conn.execute("SELECT DISTINCT building_id FROM readings")
            return {row[0] for row in await cursor.fetchall()}

    async def fetch_readings(
        self, building_id: str, since: datetime | None = None, until: datetime | None = None
    ) -> list[Reading]:
        """Readings for one building ordered by timestamp, optionally in (since, until]."""
        sql = "SELECT * FROM readings WHERE building_id = ?"
        params: list = [building_id]
        if since is not None:
            sql += " AND timestamp > ?"
            params.append(_iso(since))
        if until is not None:
            sql += " AND timestamp <= ?"
            params.append(_iso(until))
        sql += " ORDER BY timestamp ASC"
        async with self._op("fetch_readings") as conn:
            cursor = await conn.execute(sql, params)
            return [_reading(row) for row in await cursor.fetchall()]

    async def recent_readings(self, limit: int = 1000) -> list[Reading]:
        """Latest readings across all buildings, newest first."""
        async with self._op("recent_readings") as conn:
            cursor = await conn.execute("SELECT * FROM readings ORDER BY timestamp DESC LIMIT ?", (limit,))
            return [_reading(row) for row in await cursor.fetchall()]

    async def fetch_forecasts(self, building_id: str, limit: int = 30) -> list[Forecast]:
        """Latest forecasts for one building, newest date first."""
        async with self._op("fetch_forecasts") as conn:
            cursor = await conn.execute(
                "SELECT * FROM forecasts WHERE building_id = ? ORDER BY date DESC, id DESC LIMIT ?",
                (building_id, limit),
            )
            return [_forecast(row) for row in await cursor.fetchall()]

    async def fetch_daily_aggregates(self) -> list[DailyAggregate]:
        """Daily energy/water sums per building, ordered by building then date."""
        async with self._op("fetch_daily_aggregates") as conn:
            cursor = await conn.execute("""
                SELECT building_id, substr(timestamp, 1, 10) AS day,
                       SUM(energy) AS energy_sum, SUM(water) AS water_sum
                FROM readings
                GROUP BY building_id, day
                ORDER BY building_id, day
            """)
            return [
                DailyAggregate(
                    building_id=row["building_id"],
                    date=date.fromisoformat(row["day"]),
                    energy_sum=row["energy_sum"],
                    water_sum=row["water_sum"],
                )
                for row in await cursor.fetchall()
            ]

    async def fetch_forecasts_with_realized(
        self, start: date | None = None, end: date | None = None
    ) -> list[ForecastActual]:
        """Inner join of forecasts with realized daily totals on (building, date).

        Forecasts without realized readings, and days without forecasts, are excluded.
        """
        sql = """
            SELECT f.building_id, f.date, f.energy, f.water,
                   r.energy_sum, r.water_sum
            FROM forecasts f
            JOIN (
                SELECT building_id, substr(timestamp, 1, 10) AS day,
                       SUM(energy) AS energy_sum, SUM(water) AS water_sum
                FROM readings
                GROUP BY building_id, day
            ) r ON f.building_id = r.building_id AND f.date = r.day
        """
        params: list = []
        clauses = []
        if start is not None:
            clauses.append("f.date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("f.date <= ?")
            params.append(end.isoformat())
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY f.date, f.building_id, f.id"

        async with self._op("fetch_forecasts_with_realized") as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()

        joined = []
        for row in rows:
            forecast = _forecast(row)
            joined.append(
                ForecastActual(
                    forecast=forecast,
                    actual=DailyAggregate(
                        building_id=forecast.building_id,
                        date=forecast.date,
                        energy_sum=row["energy_sum"],
                        water_sum=row["water_sum"],
                    ),
                )
            )
        return joined
