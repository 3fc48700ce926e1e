from __future__ import annotations

import json
import logging
import random
import re
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from keypace import config
from keypace.core.errors import InvalidInputError
from keypace.core.text import ReferenceText
from keypace.core.track import is_typeable

logger = logging.getLogger(__name__)

SOURCE_TYPES = ("builtin", "paste", "file")
BUILTIN_DIR = Path(__file__).resolve().parent.parent / "data" / "passages"


@dataclass(frozen=True)
class Passage:
    id: str
    title: str
    content: str
    source_type: str
    character_count: int
    word_count: int
    created_at: str = ""

    def reference(self) -> ReferenceText:
        return ReferenceText(id=self.id, text=self.content, title=self.title)


def normalize_content(text: str) -> str:
    """Drop characters that cannot be typed and collapse whitespace runs into single spaces.

    Invisible formatting characters such as soft hyphens or zero-width spaces
    would otherwise leave a passage that can never be completed.
    """
    text = "".join(ch for ch in text if ch.isspace() or is_typeable(ch))
    return re.sub(r"\s+", " ", text).strip()


def count_words(text: str) -> int:
    return len(text.split())


def load_builtin_passages(base_dir: Path) -> List[Passage]:
    """Read ``passage*.yaml`` files carrying ``title`` and ``content`` keys."""
    passages: List[Passage] = []
    if not base_dir.exists():
        logger.warning("Built-in passages directory not found: %s", base_dir)
        return passages

    for path in sorted(base_dir.glob("passage*.yaml")):
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{path.name}: expected YAML with 'title' and 'content'")
        title = raw.get("title")
        content = raw.get("content")
        if not title or not isinstance(title, str):
            raise ValueError(f"{path.name}: missing or invalid 'title'")
        if content is None:
            raise ValueError(f"{path.name}: missing 'content'")
        text = normalize_content(str(content))
        if not text:
            raise ValueError(f"{path.name}: 'content' is empty")
        passages.append(
            Passage(
                id=f"builtin:{path.stem}",
                title=title.strip(),
                content=text,
                source_type="builtin",
                character_count=len(text),
                word_count=count_words(text),
            )
        )
    return passages


class ContentLibrary:
    """Passages available for typing tests.

    Built-in passages ship as YAML next to the package; passages added by the
    user are kept in a JSON file (``config.CONTENT_FILE`` unless another path
    is given).
    """

    def __init__(
        self,
        file_path: Optional[Path] = None,
        builtin_dir: Optional[Path] = BUILTIN_DIR,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._file_path = Path(file_path) if file_path is not None else config.CONTENT_FILE
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._builtin = load_builtin_passages(builtin_dir) if builtin_dir is not None else []
        self._uploaded: Dict[str, Passage] = self._load()

    def all(self) -> List[Passage]:
        """User passages newest first, followed by the built-in ones."""
        with self._lock:
            uploaded = sorted(self._uploaded.values(), key=lambda p: p.created_at, reverse=True)
            return uploaded + list(self._builtin)

    def get(self, content_id: str) -> Passage:
        with self._lock:
            if content_id in self._uploaded:
                return self._uploaded[content_id]
            for passage in self._builtin:
                if passage.id == content_id:
                    return passage
        raise KeyError(content_id)

    def __contains__(self, content_id: object) -> bool:
        if not isinstance(content_id, str):
            return False
        try:
            self.get(content_id)
        except KeyError:
            return False
        return True

    def random(self) -> Passage:
        """Pick a passage uniformly; seeds the default passage into an empty library."""
        passages = self.all()
        if not passages:
            logger.info("Content library is empty, adding the default passage")
            return self.add(config.DEFAULT_PASSAGE_TITLE, config.DEFAULT_PASSAGE_TEXT)
        return self._rng.choice(passages)

    def get_reference_text(self, content_id: Optional[str] = None) -> ReferenceText:
        passage = self.random() if content_id is None else self.get(content_id)
        return passage.reference()

    def add(self, title: str, content: str, source_type: str = "paste") -> Passage:
        if source_type not in SOURCE_TYPES or source_type == "builtin":
            raise InvalidInputError(f"unsupported source type: {source_type!r}")
        if not isinstance(content, str):
            raise InvalidInputError("content must be text")
        text = normalize_content(content)
        if not text:
            raise InvalidInputError("no content provided")
        clean_title = (title or "").strip()
        if not clean_title:
            raise InvalidInputError("a title is required")

        passage = Passage(
            id=str(uuid.uuid4()),
            title=clean_title,
            content=text,
            source_type=source_type,
            character_count=len(text),
            word_count=count_words(text),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._uploaded[passage.id] = passage
            self._save()
        logger.info("Added passage %s (%s, %d chars)", passage.id, source_type, passage.character_count)
        return passage

    def import_file(self, path: Path, title: Optional[str] = None) -> Passage:
        """Add a passage from a UTF-8 ``.txt`` file; the title defaults to the file stem."""
        path = Path(path)
        if path.suffix.lower() != ".txt":
            raise InvalidInputError(f"{path.name}: only .txt files are accepted")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError(f"{path.name}: not valid UTF-8 text") from e
        return self.add((title or "").strip() or path.stem, text, source_type="file")

    def _load(self) -> Dict[str, Passage]:
        passages: Dict[str, Passage] = {}
        if not self._file_path.exists():
            return passages
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load content from %s: %s", self._file_path, e)
            return passages

        if not isinstance(payload, dict):
            logger.warning("Unexpected content file layout in %s", self._file_path)
            return passages

        items = payload.get("passages", [])
        if not isinstance(items, list):
            logger.warning("Ignoring non-list passages in %s", self._file_path)
            return passages

        for item in items:
            try:
                passage = Passage(
                    id=str(item["id"]),
                    title=str(item["title"]),
                    content=str(item["content"]),
                    source_type=str(item.get("source_type", "paste")),
                    character_count=int(item.get("character_count", len(item["content"]))),
                    word_count=int(item.get("word_count", count_words(item["content"]))),
                    created_at=str(item.get("created_at", "")),
                )
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed passage in %s: %s", self._file_path, e)
                continue
            if not passage.content:
                continue
            passages[passage.id] = passage
        return passages

    def _save(self) -> None:
        payload = {"passages": [asdict(p) for p in self._uploaded.values()]}
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save content to %s: %s", self._file_path, e)
