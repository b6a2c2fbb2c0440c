"""Configuration management.

``Settings`` is a **metaclass-based singleton**: the first call to
``Settings.load()`` creates the instance; every later call returns
the same object.  Use ``update()`` to change values at runtime, or
``reload()`` to re-read everything from disk.

Application configuration lives under ``.metadata/``:

* ``config.yaml``  – store path, Gemini model, log level, batch delay

On first run, missing files are copied from ``.metadata.example/``.
The Gemini credential is read from the ``GEMINI_API_KEY`` (or legacy
``API_KEY``) environment variable and never written to disk.

Provider selection is user data, not application config: it lives in
the key-value store as an :class:`LLMSettings` blob (see
:class:`bankai.database.repository.PaperRepository`).
"""

import logging
import os
import shutil
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Literal, Optional

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Store keys and defaults
# ---------------------------------------------------------------------------

PAPERS_KEY = "bankai_papers"
USER_KEY = "bankai_user"
LAST_BATCH_KEY = "bankai_last_batch_run"
SOURCES_KEY = "bankai_sources"
SETTINGS_KEY = "bankai_llm_settings"

DEFAULT_SOURCES = ["ArXiv", "Google Scholar", "IEEE Xplore", "SSRN", "ACM Digital Library"]

DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"
DEFAULT_GROQ_MODEL = "llama3-70b-8192"

LLMProvider = Literal["gemini", "groq"]
PROVIDERS: tuple[str, ...] = ("gemini", "groq")


# ---------------------------------------------------------------------------
# LLM settings (persisted in the store)
# ---------------------------------------------------------------------------

@dataclass
class LLMSettings:
    """Provider selector plus provider-specific credentials."""

    provider: LLMProvider = "gemini"
    groq_api_key: Optional[str] = None
    groq_model: str = DEFAULT_GROQ_MODEL

    @classmethod
    def from_dict(cls, data: Any) -> "LLMSettings":
        """Merge a stored blob over the defaults.

        Unknown keys are ignored and missing keys keep their default, so
        blobs written by older versions still load.
        """
        settings = cls()
        if not isinstance(data, dict):
            return settings
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in known and value is not None:
                setattr(settings, key, value)
        if settings.provider not in PROVIDERS:
            settings.provider = "gemini"
        return settings

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Singleton metaclass
# ---------------------------------------------------------------------------

class _SettingsMeta(type):
    """Metaclass that enforces a process-wide singleton for *Settings*.

    * First ``Settings(...)`` creates and caches the instance.
    * Later ``Settings(...)`` calls return the cached instance (args ignored).
    """

    _instances: dict[type, Any] = {}

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]


# ---------------------------------------------------------------------------
# Settings dataclass (singleton)
# ---------------------------------------------------------------------------

@dataclass
class Settings(metaclass=_SettingsMeta):
    """Application settings: singleton with runtime-mutable values.

    Usage::

        settings = Settings.load()          # first call → create
        settings = Settings.load()          # later → same object
        settings.update(db_path=Path(...))  # runtime change
        settings = Settings.reload()        # re-read from disk
    """

    db_path: Path = Path("bankai.db")
    metadata_dir: Path = Path(".metadata")
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    log_level: Optional[str] = None
    batch_start_delay: float = 20.0

    # ── Runtime helpers ───────────────────────────────────────────────

    def update(self, **kwargs: Any) -> None:
        """Mutate settings fields at runtime.

        >>> Settings.load().update(db_path=Path("/tmp/test.db"))
        """
        for key, value in kwargs.items():
            if not hasattr(self, key):
                raise AttributeError(f"Settings has no field '{key}'")
            setattr(self, key, value)

    # ── Factory / lifecycle ───────────────────────────────────────────

    @classmethod
    def load(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Load or return the singleton Settings instance.

        On first call the singleton is created; subsequent calls return
        the cached instance.  Pass *base_dir* to override the project
        root (defaults to the repository root one level above ``bankai/``).
        """
        if cls in _SettingsMeta._instances:
            return _SettingsMeta._instances[cls]  # type: ignore[return-value]

        if base_dir is None:
            base_dir = Path(__file__).resolve().parent.parent

        metadata_dir = base_dir / ".metadata"
        cls._ensure_default_files(base_dir, metadata_dir)

        data = _load_config(metadata_dir / "config.yaml")

        db_path = Path(data.get("db_path") or "bankai.db")
        if not db_path.is_absolute():
            db_path = base_dir / db_path

        return cls(
            db_path=db_path,
            metadata_dir=metadata_dir,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None,
            gemini_model=str(data.get("gemini_model") or DEFAULT_GEMINI_MODEL),
            log_level=data.get("log_level") or None,
            batch_start_delay=_as_float(data.get("batch_start_delay"), 20.0),
        )

    @classmethod
    def reload(cls, base_dir: Optional[Path] = None) -> "Settings":
        """Discard the current singleton and re-load from disk."""
        cls.reset()
        return cls.load(base_dir)

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton so the next ``load()`` re-creates it."""
        _SettingsMeta._instances.pop(cls, None)

    # ── Private ───────────────────────────────────────────────────────

    @staticmethod
    def _ensure_default_files(base_dir: Path, metadata_dir: Path) -> None:
        """Copy ``.metadata.example/`` templates when real files are missing."""
        metadata_dir.mkdir(parents=True, exist_ok=True)

        example_dir = base_dir / ".metadata.example"
        if not example_dir.exists():
            return

        for example_file in example_dir.iterdir():
            if example_file.is_file():
                target = metadata_dir / example_file.name
                if not target.exists():
                    shutil.copy2(example_file, target)
                    logger.info("Created .metadata/%s from template", example_file.name)


# ---------------------------------------------------------------------------
# YAML loaders
# ---------------------------------------------------------------------------

def _load_config(path: Path) -> dict[str, Any]:
    """Load ``config.yaml``; a missing or malformed file yields ``{}``."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning("Ignoring malformed %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(path: Path, settings: Settings) -> None:
    """Persist the file-backed part of *settings* to ``config.yaml``."""
    data: dict[str, Any] = {
        "db_path": str(settings.db_path),
        "gemini_model": settings.gemini_model,
        "log_level": settings.log_level,
        "batch_start_delay": settings.batch_start_delay,
    }
    with open(path, "w", encoding="utf-8") as f:
        f.write("# BankAI configuration\n")
        f.write("# The Gemini API key is read from GEMINI_API_KEY, never from this file.\n\n")
        yaml.dump(
            data,
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
