"""
Game catalog: human-readable descriptors for titles, loaded from JSON.

Document shape::

    {"titles": {"<title code>": {"code": "...", "title": "...", ...}, ...}}

Titles are kept sorted by title code. Localised titles use the marker "ー"
for "no translation"; it reads back as None and is written out again in
place of None.

This module is independent of the .sfrom container codec.
"""

from __future__ import annotations

import json
from dataclasses import MISSING, dataclass, field, fields
from datetime import date
from typing import IO, Any, Dict, List, Optional, Tuple

BLANK_CHAR = "ー"

_LOCALISED_TITLES = ("title_ko", "title_zh_hans", "title_zh_hant")

# Expected JSON types of the required scalar fields
_SCALAR_TYPES: Dict[str, Tuple[type, ...]] = {
    "code": (str,),
    "copyright": (str,),
    "cover": (str,),
    "details_screen": (str,),
    "players_count": (int,),
    "publisher": (str,),
    "release_date": (str,),
    "rewind_interval": (int, float),
    "rom": (str,),
    "save_count": (int,),
    "simultaneous": (bool,),
    "sort_publisher": (str,),
    "sort_title": (str,),
    "title": (str,),
    "volume": (int,),
}


def _check_scalar(name: str, value: Any) -> None:
    expected = _SCALAR_TYPES[name]
    # JSON true/false load as bool, which is also an int
    ok = isinstance(value, expected) and (bool in expected or not isinstance(value, bool))
    if not ok:
        names = " or ".join(t.__name__ for t in expected)
        raise ValueError(f"title field {name!r} must be {names}, got {value!r}")


@dataclass
class GameTitle:
    # Game title ID
    code: str
    # Should look like "©<year> <publisher>[/<developers>/]", e.g. "©2023 Nintendo."
    copyright: str
    # Path to the cover (box) image
    cover: str
    # Path to the title screen image
    details_screen: str
    # Re-release date (date added to the database)
    lcla6_release_date: date
    players_count: int
    publisher: str
    # Original release date; may contain wildcards such as "2022-01-??"
    release_date: str
    # Snapshots to rewind
    rewind_interval: float
    # Path to the ROM file
    rom: str
    save_count: int
    # Simultaneous multiplayer
    simultaneous: bool
    sort_publisher: str
    sort_title: str
    title: str
    volume: int
    compatible_titles: Optional[List[str]] = None
    connect_guides: Optional[List[str]] = None
    display_version: Optional[str] = None
    fadein: Optional[Tuple[int, int]] = None
    hidden_countries: Optional[List[str]] = None
    onecartridge_guides: Optional[List[str]] = None
    # Cartridge SRAM size in bytes
    sram_file_size: Optional[int] = None
    # Path to a .break save state
    startup_state: Optional[str] = None
    title_ko: Optional[str] = None
    title_zh_hans: Optional[str] = field(default=None, metadata={"json": "title_zhHans"})
    title_zh_hant: Optional[str] = field(default=None, metadata={"json": "title_zhHant"})
    adjust_colors: Optional[str] = None
    anothertitle_guides: Optional[List[str]] = None
    # Title to transfer save data from
    transfer_title: Optional[str] = None

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "GameTitle":
        if not isinstance(obj, dict):
            raise ValueError("title entry must be an object")
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            key = f.metadata.get("json", f.name)
            if key not in obj:
                if f.default is MISSING:
                    raise ValueError(f"title entry missing required field {key!r}")
                continue
            value = obj[key]
            if f.name == "lcla6_release_date":
                try:
                    value = date.fromisoformat(value)
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"invalid lcla6_release_date {value!r}") from exc
            elif f.name == "fadein" and value is not None:
                if not isinstance(value, list) or len(value) != 2:
                    raise ValueError("fadein must be a list of two integers")
                value = (int(value[0]), int(value[1]))
            elif f.name in _LOCALISED_TITLES and value == BLANK_CHAR:
                value = None
            elif f.name in _SCALAR_TYPES:
                _check_scalar(key, value)
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            key = f.metadata.get("json", f.name)
            value = getattr(self, f.name)
            if f.name == "lcla6_release_date":
                value = value.isoformat()
            elif f.name == "fadein" and value is not None:
                value = list(value)
            elif f.name in _LOCALISED_TITLES and value is None:
                value = BLANK_CHAR
            out[key] = value
        return out


class GameList:
    def __init__(self, titles: Optional[Dict[str, GameTitle]] = None):
        self.titles: Dict[str, GameTitle] = {k: titles[k] for k in sorted(titles)} if titles else {}

    @classmethod
    def from_str(cls, text: str) -> "GameList":
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"catalog is not valid JSON: {exc}") from exc
        return cls._from_doc(doc)

    @classmethod
    def from_reader(cls, reader: IO[str]) -> "GameList":
        return cls.from_str(reader.read())

    @classmethod
    def load(cls, path: str) -> "GameList":
        with open(path, "r", encoding="utf-8") as fh:
            return cls.from_reader(fh)

    @classmethod
    def _from_doc(cls, doc: Any) -> "GameList":
        if not isinstance(doc, dict) or not isinstance(doc.get("titles"), dict):
            raise ValueError("catalog must be an object with a 'titles' object")
        titles = {}
        for key, entry in doc["titles"].items():
            try:
                titles[key] = GameTitle.from_dict(entry)
            except ValueError as exc:
                raise ValueError(f"title {key!r}: {exc}") from exc
        return cls(titles)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(
            {"titles": {k: t.to_dict() for k, t in self.titles.items()}},
            ensure_ascii=False,
            indent=indent,
        )

    def add(self, key: str, title: GameTitle) -> None:
        self.titles[key] = title
        self.titles = {k: self.titles[k] for k in sorted(self.titles)}

    def __len__(self) -> int:
        return len(self.titles)

    def __iter__(self):
        return iter(self.titles.values())

    def get(self, key: str) -> Optional[GameTitle]:
        return self.titles.get(key)


def sanitize_sort_title(title: str) -> str:
    return title.lower().replace(" ", "_")
