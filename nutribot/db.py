from __future__ import annotations
import logging
import os
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

SCHEMA = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  tg_id INTEGER NOT NULL UNIQUE,
  chat_id INTEGER NOT NULL,
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profiles (
  user_id INTEGER PRIMARY KEY,
  sex TEXT NOT NULL,                           -- masculino|feminino (free text accepted)
  age INTEGER NOT NULL,
  height_cm REAL NOT NULL,
  weight_kg REAL NOT NULL,
  activity TEXT NOT NULL,                      -- sedentário|levemente ativo|...|extremamente ativo
  goal TEXT NOT NULL,                          -- perda de peso|manutenção|hipertrofia|...
  updated_at TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS daily_targets (
  user_id INTEGER PRIMARY KEY,
  kcal_target INTEGER NOT NULL,
  protein_g INTEGER NOT NULL,
  fiber_g INTEGER NOT NULL,
  water_ml INTEGER NOT NULL,
  weekly_exercise_min INTEGER NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS food_entries (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  ts TEXT NOT NULL,
  text TEXT,
  photo_file_id TEXT,
  parsed_json TEXT NOT NULL,
  kcal_low INTEGER NOT NULL,
  kcal_high INTEGER NOT NULL,
  kcal_mid INTEGER NOT NULL,
  conf REAL NOT NULL,
  err_low REAL NOT NULL,
  err_high REAL NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS water_intake (
  user_id INTEGER NOT NULL,
  day TEXT NOT NULL,                           -- local date, YYYY-MM-DD
  target_ml INTEGER NOT NULL,
  consumed_ml INTEGER NOT NULL DEFAULT 0,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (user_id, day),
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS exercise_entries (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  ts TEXT NOT NULL,
  day TEXT NOT NULL,
  activity TEXT NOT NULL,
  minutes INTEGER NOT NULL,
  kcal INTEGER NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS body_measurements (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  ts TEXT NOT NULL,
  weight_kg REAL,
  waist_cm REAL,
  hip_cm REAL,
  body_fat_pct REAL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS supplements (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  name TEXT NOT NULL,
  dosage TEXT,
  active INTEGER NOT NULL DEFAULT 1,
  created_at TEXT NOT NULL,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS supplement_log (
  supplement_id INTEGER NOT NULL,
  day TEXT NOT NULL,
  taken_at TEXT NOT NULL,
  PRIMARY KEY (supplement_id, day),
  FOREIGN KEY(supplement_id) REFERENCES supplements(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS exams (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id INTEGER NOT NULL,
  ts TEXT NOT NULL,
  exam_type TEXT NOT NULL,
  content TEXT NOT NULL,
  summary TEXT NOT NULL,
  analysis TEXT,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS user_meta (
  user_id INTEGER NOT NULL,
  key TEXT NOT NULL,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  PRIMARY KEY (user_id, key),
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);
"""

MEASUREMENT_COLS = ("weight_kg", "waist_cm", "hip_cm", "body_fat_pct")


@dataclass
class UserRow:
    id: int
    tg_id: int
    chat_id: int


class DB:
    def __init__(self, path: str, tz: str = "America/Sao_Paulo"):
        self.path = (path or "bot.db").strip()
        self.tz = ZoneInfo(tz)

        # a missing parent directory makes sqlite fail with "unable to open database file"
        dirn = os.path.dirname(self.path)
        if dirn and not os.path.exists(dirn):
            os.makedirs(dirn, exist_ok=True)

        try:
            self.conn = sqlite3.connect(self.path)
        except sqlite3.OperationalError as e:
            raise sqlite3.OperationalError(
                f"unable to open database file: path='{self.path}'. "
                f"Fix: set DB_PATH to a writable path (e.g. /data/bot.db)."
            ) from e

        self.conn.row_factory = sqlite3.Row
        self._init()

    def _init(self):
        self.conn.executescript(SCHEMA)
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.commit()

    def close(self):
        self.conn.close()

    # time helpers: timestamps are naive UTC ISO strings, days are local dates

    def now_iso(self) -> str:
        return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0).isoformat()

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def day_of(self, ts_iso: str) -> date:
        ts = datetime.fromisoformat(ts_iso).replace(tzinfo=timezone.utc)
        return ts.astimezone(self.tz).date()

    def _utc_bounds(self, start: date, end: date) -> tuple[str, str]:
        # [start, end) in local days -> UTC ISO strings
        def conv(d: date) -> str:
            local = datetime.combine(d, time.min, tzinfo=self.tz)
            return local.astimezone(timezone.utc).replace(tzinfo=None).isoformat()
        return conv(start), conv(end)

    # users / profile

    def get_or_create_user(self, tg_id: int, chat_id: int) -> UserRow:
        row = self.conn.execute("SELECT * FROM users WHERE tg_id=?", (tg_id,)).fetchone()
        if row:
            if row["chat_id"] != chat_id and chat_id:
                self.conn.execute("UPDATE users SET chat_id=? WHERE tg_id=?", (chat_id, tg_id))
                self.conn.commit()
            return UserRow(id=row["id"], tg_id=row["tg_id"], chat_id=chat_id or row["chat_id"])

        cur = self.conn.execute(
            "INSERT INTO users (tg_id, chat_id, created_at) VALUES (?,?,?)",
            (tg_id, chat_id, self.now_iso()),
        )
        self.conn.commit()
        logger.info("new user %s", tg_id)
        return UserRow(id=int(cur.lastrowid), tg_id=tg_id, chat_id=chat_id)

    def upsert_profile(self, user_id: int, **fields):
        cols = ["sex", "age", "height_cm", "weight_kg", "activity", "goal"]
        values = [fields.get(c) for c in cols] + [self.now_iso()]
        self.conn.execute(
            f"""INSERT INTO profiles (user_id, {','.join(cols)}, updated_at) VALUES (?,?,?,?,?,?,?,?)
                ON CONFLICT(user_id) DO UPDATE SET
                {', '.join(f'{c}=excluded.{c}' for c in cols)}, updated_at=excluded.updated_at""",
            (user_id, *values),
        )
        self.conn.commit()

    def get_profile(self, user_id: int) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM profiles WHERE user_id=?", (user_id,)).fetchone()
        return dict(row) if row else None

    def set_profile_weight(self, user_id: int, weight_kg: float):
        self.conn.execute("UPDATE profiles SET weight_kg=?, updated_at=? WHERE user_id=?",
                          (weight_kg, self.now_iso(), user_id))
        self.conn.commit()

    def upsert_targets(self, user_id: int, kcal_target: int, protein_g: int, fiber_g: int,
                       water_ml: int, weekly_exercise_min: int):
        self.conn.execute(
            """INSERT INTO daily_targets
                 (user_id, kcal_target, protein_g, fiber_g, water_ml, weekly_exercise_min, updated_at)
               VALUES (?,?,?,?,?,?,?)
               ON CONFLICT(user_id) DO UPDATE SET
                 kcal_target=excluded.kcal_target, protein_g=excluded.protein_g,
                 fiber_g=excluded.fiber_g, water_ml=excluded.water_ml,
                 weekly_exercise_min=excluded.weekly_exercise_min, updated_at=excluded.updated_at""",
            (user_id, kcal_target, protein_g, fiber_g, water_ml, weekly_exercise_min, self.now_iso()),
        )
        self.conn.commit()

    def get_targets(self, user_id: int) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM daily_targets WHERE user_id=?", (user_id,)).fetchone()
        return dict(row) if row else None

    # meals

    def add_food_entry(self, user_id: int, ts_iso: str, text: str | None, photo_file_id: str | None,
                       parsed_json: str, kcal_low: int, kcal_high: int, kcal_mid: int,
                       conf: float, err_low: float, err_high: float) -> int:
        cur = self.conn.execute(
            """INSERT INTO food_entries
                (user_id, ts, text, photo_file_id, parsed_json, kcal_low, kcal_high, kcal_mid, conf, err_low, err_high)
                VALUES (?,?,?,?,?,?,?,?,?,?,?)""",
            (user_id, ts_iso, text, photo_file_id, parsed_json, kcal_low, kcal_high, kcal_mid, conf, err_low, err_high),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def get_food_entry(self, entry_id: int, user_id: int) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM food_entries WHERE id=? AND user_id=?", (entry_id, user_id)).fetchone()
        return dict(row) if row else None

    def update_food_entry(self, entry_id: int, user_id: int, parsed_json: str,
                          kcal_low: int, kcal_high: int, kcal_mid: int, conf: float, err_low: float, err_high: float):
        self.conn.execute(
            """UPDATE food_entries
               SET parsed_json=?, kcal_low=?, kcal_high=?, kcal_mid=?, conf=?, err_low=?, err_high=?
               WHERE id=? AND user_id=?""",
            (parsed_json, kcal_low, kcal_high, kcal_mid, conf, err_low, err_high, entry_id, user_id)
        )
        self.conn.commit()

    def day_kcal_sum(self, user_id: int, day: date) -> tuple[int, int, int]:
        start, end = self._utc_bounds(day, day + timedelta(days=1))
        row = self.conn.execute(
            "SELECT SUM(kcal_low) as a, SUM(kcal_mid) as b, SUM(kcal_high) as c FROM food_entries WHERE user_id=? AND ts>=? AND ts<?",
            (user_id, start, end),
        ).fetchone()
        return int(row["a"] or 0), int(row["b"] or 0), int(row["c"] or 0)

    def meal_days(self, user_id: int, start: date, end: date) -> list[str]:
        """Local days in [start, end) with at least one meal logged."""
        lo, hi = self._utc_bounds(start, end)
        rows = self.conn.execute(
            "SELECT ts FROM food_entries WHERE user_id=? AND ts>=? AND ts<?", (user_id, lo, hi)
        ).fetchall()
        return sorted({self.day_of(r["ts"]).isoformat() for r in rows})

    # water

    def get_water_intake(self, user_id: int, day: date, target_ml: int) -> dict:
        d = day.isoformat()
        self.conn.execute(
            "INSERT OR IGNORE INTO water_intake (user_id, day, target_ml, consumed_ml, updated_at) VALUES (?,?,?,0,?)",
            (user_id, d, target_ml, self.now_iso()),
        )
        # follows the current target if the profile changed during the day
        self.conn.execute(
            "UPDATE water_intake SET target_ml=? WHERE user_id=? AND day=? AND target_ml<>?",
            (target_ml, user_id, d, target_ml),
        )
        self.conn.commit()
        row = self.conn.execute("SELECT * FROM water_intake WHERE user_id=? AND day=?", (user_id, d)).fetchone()
        return dict(row)

    def add_water(self, user_id: int, day: date, ml: int, target_ml: int) -> dict:
        self.get_water_intake(user_id, day, target_ml)
        self.conn.execute(
            "UPDATE water_intake SET consumed_ml=MAX(0, consumed_ml + ?), updated_at=? WHERE user_id=? AND day=?",
            (ml, self.now_iso(), user_id, day.isoformat()),
        )
        self.conn.commit()
        return self.get_water_intake(user_id, day, target_ml)

    def water_history(self, user_id: int, start: date, end: date) -> list[dict]:
        rows = self.conn.execute(
            "SELECT day, target_ml, consumed_ml FROM water_intake WHERE user_id=? AND day>=? AND day<? ORDER BY day",
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchall()
        return [dict(r) for r in rows]

    # exercise

    def add_exercise(self, user_id: int, ts_iso: str, activity: str, minutes: int, kcal: int) -> int:
        cur = self.conn.execute(
            "INSERT INTO exercise_entries (user_id, ts, day, activity, minutes, kcal) VALUES (?,?,?,?,?,?)",
            (user_id, ts_iso, self.day_of(ts_iso).isoformat(), activity, minutes, kcal),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def exercise_minutes(self, user_id: int, start: date, end: date) -> int:
        row = self.conn.execute(
            "SELECT SUM(minutes) AS m FROM exercise_entries WHERE user_id=? AND day>=? AND day<?",
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchone()
        return int(row["m"] or 0)

    def exercise_days(self, user_id: int, start: date, end: date) -> list[str]:
        rows = self.conn.execute(
            "SELECT DISTINCT day FROM exercise_entries WHERE user_id=? AND day>=? AND day<? ORDER BY day",
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchall()
        return [r["day"] for r in rows]

    def delete_exercise_since(self, user_id: int, start: date) -> int:
        cur = self.conn.execute("DELETE FROM exercise_entries WHERE user_id=? AND day>=?",
                                (user_id, start.isoformat()))
        self.conn.commit()
        return cur.rowcount

    # body measurements

    def add_measurement(self, user_id: int, ts_iso: str, **values) -> int:
        cols = [c for c in MEASUREMENT_COLS if values.get(c) is not None]
        if not cols:
            raise ValueError("no measurement values")
        cur = self.conn.execute(
            f"INSERT INTO body_measurements (user_id, ts, {','.join(cols)}) VALUES (?,?{',?' * len(cols)})",
            (user_id, ts_iso, *[values[c] for c in cols]),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def latest_measurements(self, user_id: int) -> dict:
        """Most recent non-null value per column."""
        out = {}
        for col in MEASUREMENT_COLS:
            row = self.conn.execute(
                f"SELECT {col}, ts FROM body_measurements WHERE user_id=? AND {col} IS NOT NULL ORDER BY ts DESC, id DESC LIMIT 1",
                (user_id,),
            ).fetchone()
            if row:
                out[col] = row[col]
        return out

    def measurement_history(self, user_id: int, limit: int = 10) -> list[dict]:
        rows = self.conn.execute(
            "SELECT * FROM body_measurements WHERE user_id=? ORDER BY ts DESC, id DESC LIMIT ?", (user_id, limit)
        ).fetchall()
        return [dict(r) for r in rows]

    # supplements

    def add_supplement(self, user_id: int, name: str, dosage: str | None) -> int:
        cur = self.conn.execute(
            "INSERT INTO supplements (user_id, name, dosage, created_at) VALUES (?,?,?,?)",
            (user_id, name, dosage, self.now_iso()),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def list_supplements(self, user_id: int, day: Optional[date] = None) -> list[dict]:
        d = (day or self.today()).isoformat()
        rows = self.conn.execute(
            """SELECT s.id, s.name, s.dosage, l.taken_at IS NOT NULL AS taken
               FROM supplements s LEFT JOIN supplement_log l ON l.supplement_id = s.id AND l.day = ?
               WHERE s.user_id=? AND s.active=1 ORDER BY s.id""",
            (d, user_id),
        ).fetchall()
        return [dict(r) for r in rows]

    def deactivate_supplement(self, user_id: int, supplement_id: int) -> bool:
        cur = self.conn.execute("UPDATE supplements SET active=0 WHERE id=? AND user_id=?", (supplement_id, user_id))
        self.conn.commit()
        return cur.rowcount > 0

    def mark_supplement_taken(self, user_id: int, supplement_id: int, day: date) -> bool:
        owner = self.conn.execute("SELECT 1 FROM supplements WHERE id=? AND user_id=? AND active=1",
                                  (supplement_id, user_id)).fetchone()
        if not owner:
            return False
        self.conn.execute(
            "INSERT OR IGNORE INTO supplement_log (supplement_id, day, taken_at) VALUES (?,?,?)",
            (supplement_id, day.isoformat(), self.now_iso()),
        )
        self.conn.commit()
        return True

    def supplements_taken(self, user_id: int, start: date, end: date) -> int:
        row = self.conn.execute(
            """SELECT COUNT(*) AS n FROM supplement_log l JOIN supplements s ON s.id = l.supplement_id
               WHERE s.user_id=? AND s.active=1 AND l.day>=? AND l.day<?""",
            (user_id, start.isoformat(), end.isoformat()),
        ).fetchone()
        return int(row["n"])

    # exams

    def add_exam(self, user_id: int, exam_type: str, content: str, summary: str) -> int:
        cur = self.conn.execute(
            "INSERT INTO exams (user_id, ts, exam_type, content, summary) VALUES (?,?,?,?,?)",
            (user_id, self.now_iso(), exam_type, content, summary),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def set_exam_analysis(self, exam_id: int, analysis: str):
        self.conn.execute("UPDATE exams SET analysis=? WHERE id=?", (analysis, exam_id))
        self.conn.commit()

    def recent_exams(self, user_id: int, limit: int = 5) -> list[dict]:
        rows = self.conn.execute(
            "SELECT id, ts, exam_type, summary, analysis FROM exams WHERE user_id=? ORDER BY ts DESC, id DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_exam(self, exam_id: int, user_id: int) -> Optional[dict]:
        row = self.conn.execute("SELECT * FROM exams WHERE id=? AND user_id=?", (exam_id, user_id)).fetchone()
        return dict(row) if row else None

    # per-user key/value

    def get_meta(self, user_id: int, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM user_meta WHERE user_id=? AND key=?", (user_id, key)).fetchone()
        return row["value"] if row else None

    def set_meta(self, user_id: int, key: str, value: str):
        self.conn.execute(
            """INSERT INTO user_meta (user_id, key, value, updated_at) VALUES (?,?,?,?)
               ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
            (user_id, key, value, self.now_iso()),
        )
        self.conn.commit()
