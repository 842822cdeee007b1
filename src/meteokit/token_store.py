# meteokit/token_store.py
"""Secure storage capability for OAuth tokens.

The OAuthManager never talks to a platform keychain directly; it receives a
`TokenStore` and only uses get/set/delete on string values.
"""

import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from .log_config import logger


@runtime_checkable
class TokenStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryTokenStore:
    """TokenStore kept in a dict. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileTokenStore:
    """TokenStore persisted to a JSON file so that tokens survive restarts.

    The whole file is rewritten on every mutation. Restricting access to the
    file is left to the deployment.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Token file {self.path} must contain a JSON object.")
        return payload

    def _dump(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(values, indent=2), encoding="utf-8")

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._dump(values)
        logger.trace(f"Stored '{key}' in {self.path}")

    def delete(self, key: str) -> None:
        values = self._load()
        if values.pop(key, None) is not None:
            self._dump(values)
            logger.trace(f"Deleted '{key}' from {self.path}")
