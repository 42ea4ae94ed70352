import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the local SQLite record store used by the `sqlite` backend.

    - The database file is located at: <database_dir>/dashboard.db
    - `database_dir` falls back to the DATABASE_DIR environment variable.
      A RuntimeError is raised if neither is usable (not a directory and
      cannot be created).
    - On the first call to `ensure_database()` for a given instance the
      `plant_classifications` and `profiles` tables are created if missing,
      and columns added by later schema versions are back-filled. Existing
      rows are kept.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, database_dir: Optional[Path | str] = None) -> None:
        env_dir = str(database_dir) if database_dir is not None else os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "The sqlite record store needs DATABASE_DIR: a writable directory "
                "that will hold dashboard.db."
            )

        db_dir = Path(env_dir).expanduser()

        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} ({db_dir}) is a file; the record store needs a directory."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "dashboard.db"

        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite schema exists at `self.db_path`.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS plant_classifications (
                            id TEXT PRIMARY KEY,
                            classification TEXT NOT NULL
                                CHECK (classification IN ('Healthy', 'Unhealthy')),
                            created_at TEXT NOT NULL,
                            image_url TEXT NOT NULL DEFAULT '',
                            location TEXT NOT NULL DEFAULT ''
                        )
                        """
                    )
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS profiles (
                            id TEXT PRIMARY KEY,
                            first_name TEXT,
                            last_name TEXT,
                            date_of_birth TEXT,
                            phone TEXT,
                            address TEXT,
                            updated_at TEXT
                        )
                        """
                    )
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_plant_classifications_created_at "
                        "ON plant_classifications(created_at)"
                    )

                    # `confidence` arrived after the first schema; add it to older files.
                    cur = await db.execute("PRAGMA table_info(plant_classifications)")
                    cols = await cur.fetchall()
                    col_names = {col[1] for col in cols}
                    if "confidence" not in col_names:
                        await db.execute(
                            "ALTER TABLE plant_classifications ADD COLUMN confidence NUMERIC"
                        )

                    await db.commit()
                break
            except FileNotFoundError:
                # Freshly created directories can briefly report the file missing.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection` whose rows
        can be read by column name.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        try:
            yield conn
        finally:
            await conn.close()
