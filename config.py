from sqlalchemy import create_engine, text
import threading

from logging_config import setup_logging

logger = setup_logging(__name__)

# =============================================================================
# Database Configuration
# =============================================================================

# Serializes engine creation within the process
_ENGINE_LOCK = threading.Lock()


def get_settings() -> dict:
    from settings_service import SettingsService

    return SettingsService().settings_dict


class DatabaseConfig:
    """Resolves a database alias from settings.toml to a shared SQLAlchemy engine.

    Engines are shared per alias so every repository talking to the same
    sqlite file goes through one connection pool.
    """

    _engines: dict[str, object] = {}

    def __init__(self, alias: str | None = None, dialect: str = "sqlite"):
        settings = get_settings()
        db_paths = settings["db_paths"]
        if alias is None:
            alias = settings["env_db_aliases"][settings["env"]["env"]]

        if alias not in db_paths:
            raise ValueError(
                f"Unknown database alias '{alias}'. "
                f"Available: {list(db_paths.keys())}"
            )
        self.alias = alias
        self.path = db_paths[alias]
        self.url = f"{dialect}:///{self.path}"

    @property
    def engine(self):
        eng = DatabaseConfig._engines.get(self.alias)
        if eng is None:
            with _ENGINE_LOCK:
                eng = DatabaseConfig._engines.get(self.alias)
                if eng is None:
                    eng = create_engine(self.url)
                    DatabaseConfig._engines[self.alias] = eng
                    logger.info(f"Created engine for alias '{self.alias}' at {self.path}")
        return eng

    def integrity_check(self) -> bool:
        """Run PRAGMA integrity_check against the database."""
        with self.engine.connect() as conn:
            result = conn.execute(text("PRAGMA integrity_check")).fetchone()
        ok = result is not None and result[0] == "ok"
        if not ok:
            logger.error(f"Integrity check failed for '{self.alias}': {result}")
        return ok

    @classmethod
    def dispose_all(cls) -> None:
        """Dispose every shared engine (used by tests and the CLI)."""
        with _ENGINE_LOCK:
            for eng in cls._engines.values():
                eng.dispose()
            cls._engines.clear()
