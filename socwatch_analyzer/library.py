"""SKU-grouped profile library persisted as JSON."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from socwatch_analyzer.models import GameProfile

DEFAULT_LIBRARY_PATH = "socwatch_library.json"
LIBRARY_ENV_VAR = "SOCWATCH_LIBRARY"


class LibraryError(ValueError):
    """An invalid library operation (unknown SKU, bad name, bad index)."""


def default_library_path() -> Path:
    return Path(os.getenv(LIBRARY_ENV_VAR, DEFAULT_LIBRARY_PATH))


@dataclass
class Sku:
    """A user-named batch of uploaded profiles."""

    name: str
    games: list[GameProfile] = field(default_factory=list)
    is_archived: bool = False

    def to_dict(self) -> dict:
        payload = {
            "name": self.name,
            "games": [game.to_dict() for game in self.games]
        }
        if self.is_archived:
            payload["isArchived"] = True
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "Sku":
        return cls(
            name=data["name"],
            games=[GameProfile.from_dict(game) for game in data.get("games") or []],
            is_archived=bool(data.get("isArchived", False))
        )


class ProfileLibrary:
    """Active and archived SKUs backed by one JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.skus: list[Sku] = []
        self.archived: list[Sku] = []

    def load(self) -> str | None:
        """
        Read the library file.

        Returns:
            None on success or when the file does not exist yet; otherwise the
            reason the file could not be loaded (the library is left empty)
        """
        self.skus = []
        self.archived = []
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            self.skus = [Sku.from_dict(item) for item in data.get("skus", [])]
            self.archived = [Sku.from_dict(item) for item in data.get("archivedSkus", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            self.skus = []
            self.archived = []
            return f"Could not load library {self.path}: {str(exc)}"
        return None

    def save(self) -> None:
        payload = {
            "skus": [sku.to_dict() for sku in self.skus],
            "archivedSkus": [sku.to_dict() for sku in self.archived]
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(payload, f, indent=2)

    def _find(self, skus: list[Sku], name: str) -> Sku | None:
        for sku in skus:
            if sku.name == name:
                return sku
        return None

    def _require(self, name: str) -> Sku:
        sku = self._find(self.skus, name)
        if sku is None:
            raise LibraryError(f"SKU not found: {name}")
        return sku

    def add_profiles(self, sku_name: str, profiles: list[GameProfile]) -> Sku:
        """Append profiles to an existing SKU, or create the SKU."""
        name = sku_name.strip()
        if not name:
            raise LibraryError("SKU name cannot be empty.")
        sku = self._find(self.skus, name)
        if sku is None:
            sku = Sku(name=name)
            self.skus.append(sku)
        sku.games.extend(profiles)
        return sku

    def remove_game(self, sku_name: str, index: int) -> GameProfile:
        """Remove one game by position; a SKU left empty is dropped."""
        sku = self._require(sku_name)
        if index < 0 or index >= len(sku.games):
            raise LibraryError(f"No game at index {index} in SKU {sku_name}")
        removed = sku.games.pop(index)
        if not sku.games:
            self.skus.remove(sku)
        return removed

    def remove_sku(self, sku_name: str) -> Sku:
        sku = self._require(sku_name)
        self.skus.remove(sku)
        return sku

    def archive_sku(self, sku_name: str) -> None:
        sku = self._require(sku_name)
        self.skus.remove(sku)
        sku.is_archived = True
        self.archived.append(sku)

    def unarchive_sku(self, sku_name: str) -> None:
        sku = self._find(self.archived, sku_name)
        if sku is None:
            raise LibraryError(f"Archived SKU not found: {sku_name}")
        self.archived.remove(sku)
        sku.is_archived = False
        self.skus.append(sku)

    def rename_sku(self, old_name: str, new_name: str) -> None:
        sku = self._require(old_name)
        trimmed = new_name.strip()
        if not trimmed:
            raise LibraryError("SKU name cannot be empty.")
        if trimmed != old_name and self._find(self.skus, trimmed) is not None:
            raise LibraryError("A SKU with this name already exists.")
        sku.name = trimmed

    def find_game(self, sku_name: str, game_name: str) -> GameProfile:
        sku = self._require(sku_name)
        for game in sku.games:
            if game.name == game_name:
                return game
        raise LibraryError(f"Game not found: {sku_name}/{game_name}")

    def iter_games(self) -> Iterator[tuple[str, GameProfile]]:
        for sku in self.skus:
            for game in sku.games:
                yield sku.name, game
