"""
smart_allocator/portfolio_store.py
----------------------------------
Persistent list of watched symbols.

Design
------
* A single JSON document ``{"symbols": [...]}`` at ``PORTFOLIO_FILE``
  (``data/portfolio.json`` unless ``SMART_ALLOCATOR_PORTFOLIO`` is set).
* Read-all / replace-all semantics: ``load()`` returns the whole list,
  ``save()`` overwrites it.  ``add()`` / ``remove()`` are thin wrappers.
* A missing file is seeded with ``DEFAULT_SYMBOLS`` on first load.

Thread / process safety
-----------------------
Writes go through a temp file + rename so a crash mid-write never leaves a
truncated portfolio on disk.  Concurrent writers are last-write-wins.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from smart_allocator.config import DEFAULT_SYMBOLS, PORTFOLIO_FILE

logger = logging.getLogger(__name__)


def _clean_symbols(symbols) -> List[str]:
    """
    Validate and canonicalise a symbol list: strip, upper-case, drop
    blanks and duplicates (first occurrence wins).

    Raises
    ------
    ValueError
        If *symbols* is not a list/tuple of strings.
    """
    if not isinstance(symbols, (list, tuple)):
        raise ValueError(
            f"Portfolio symbols must be a list, got {type(symbols).__name__}."
        )

    cleaned: List[str] = []
    for s in symbols:
        if not isinstance(s, str):
            raise ValueError(f"Portfolio symbols must be strings, got {s!r}.")
        s = s.strip().upper()
        if s and s not in cleaned:
            cleaned.append(s)
    return cleaned


class PortfolioStore:
    """
    JSON-file backed symbol list.

    Usage
    -----
    ::

        store = PortfolioStore()
        symbols = store.load()        # ['AAPL', 'NVDA', 'TSLA', 'MSFT']
        store.add("amzn")             # ['AAPL', 'NVDA', 'TSLA', 'MSFT', 'AMZN']
        store.save(["MSFT"])          # replace everything
    """

    def __init__(self, path: Optional[str | Path] = None):
        self._path = Path(path) if path is not None else PORTFOLIO_FILE

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def load(self) -> List[str]:
        """
        Return the stored symbols, seeding the file with
        ``DEFAULT_SYMBOLS`` when it does not exist yet.

        Raises
        ------
        ValueError
            If the file exists but is unreadable or malformed.
        """
        if not self._path.exists():
            logger.info(f"Seeding portfolio file at {self._path}")
            return self.save(list(DEFAULT_SYMBOLS))

        try:
            with open(self._path, encoding="utf-8") as fh:
                payload = json.load(fh)
        except (json.JSONDecodeError, OSError) as exc:
            raise ValueError(f"Failed to load portfolio from {self._path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise ValueError(f"Portfolio file {self._path} must hold a JSON object.")
        return _clean_symbols(payload.get("symbols") or [])

    def save(self, symbols: Iterable[str]) -> List[str]:
        """
        Replace the stored list with *symbols* and return what was written.

        Raises
        ------
        ValueError
            If *symbols* is not a list of strings.
        OSError
            If the file cannot be written.
        """
        cleaned = _clean_symbols(symbols)
        self._write({"symbols": cleaned})
        return cleaned

    def add(self, symbol: str) -> List[str]:
        """Append *symbol* (no-op when already present)."""
        return self.save(self.load() + [symbol])

    def remove(self, symbol: str) -> List[str]:
        """Drop *symbol* (no-op when absent)."""
        target = symbol.strip().upper()
        return self.save([s for s in self.load() if s != target])

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _write(self, payload: dict) -> None:
        """Atomically write the portfolio file (temp → rename)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")

        try:
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=4)
            os.replace(tmp, self._path)   # atomic on POSIX and Windows
        except OSError:
            logger.error(f"Failed to save portfolio to {self._path}", exc_info=True)
            tmp.unlink(missing_ok=True)
            raise
