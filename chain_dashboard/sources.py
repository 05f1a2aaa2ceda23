# ---------------- Source reader ----------------
# Named CSV resources: http(s) URLs via requests, anything else a file under `root`.

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import requests

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """A CSV resource could not be fetched."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class SourceReader:
    def __init__(self, root: str | Path = ".", timeout: float | None = None):
        self.root = Path(root)
        self.timeout = timeout

    def resolve(self, location: str) -> Path:
        path = Path(location)
        return path if path.is_absolute() else self.root / path

    def read(self, location: str) -> str:
        if is_url(location):
            return self._read_url(location)
        return self._read_file(location)

    def _read_url(self, url: str) -> str:
        logger.info("Fetching %s", url)
        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(url, str(e)) from e
        resp.encoding = resp.encoding or "utf-8"
        return resp.text

    def _read_file(self, location: str) -> str:
        path = self.resolve(location)
        logger.info("Reading %s", path)
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(str(path), str(e)) from e

    def read_many(self, locations: dict[str, str]) -> dict[str, str]:
        """{name: location} -> {name: text}, fetched concurrently. First failure propagates."""
        if not locations:
            return {}
        with ThreadPoolExecutor(max_workers=len(locations)) as pool:
            futures = {name: pool.submit(self.read, loc) for name, loc in locations.items()}
            return {name: fut.result() for name, fut in futures.items()}
