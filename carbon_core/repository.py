# MIT License
"""Storage for training examples and versioned models.

Repositories are constructed explicitly and handed to the pipeline; there
is no process-wide instance.  Model versions are append-only: saving a
version that already exists raises :class:`VersionConflictError`, and
:meth:`ModelRepository.commit_model` allocates and writes a version in
one step so that concurrent trainers never share a version number.
"""
from __future__ import annotations

import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .errors import RepositoryError, VersionConflictError
from .params import LinearModel, ModelMetrics, StoredModel, TrainingExample

logger = logging.getLogger(__name__)

DEFAULT_EXAMPLE_LIMIT = 10_000
COMMIT_ATTEMPTS = 5


class ModelRepository(ABC):

    @abstractmethod
    def save_model(self, stored: StoredModel) -> None:
        """Append a model version; never overwrites."""

    @abstractmethod
    def get_latest_model(self, name: str) -> Optional[StoredModel]:
        """Highest (version, created_at) record for ``name`` or ``None``."""

    @abstractmethod
    def add_example(self, example: TrainingExample) -> None: ...

    @abstractmethod
    def get_all_examples(self, limit: int = DEFAULT_EXAMPLE_LIMIT) -> List[TrainingExample]: ...

    @abstractmethod
    def count_examples(self) -> int: ...

    def next_version(self, name: str) -> int:
        latest = self.get_latest_model(name)
        return (latest.version if latest else 0) + 1

    def commit_model(self, name: str, model: LinearModel, metrics: ModelMetrics,
                     training_count: int) -> StoredModel:
        """Store ``model`` under the next free version of ``name``."""
        for _ in range(COMMIT_ATTEMPTS):
            stored = StoredModel(
                name=name,
                version=self.next_version(name),
                model=model,
                metrics=metrics,
                training_count=training_count,
            )
            try:
                self.save_model(stored)
            except VersionConflictError:
                logger.info("version %d of %s taken concurrently; retrying", stored.version, name)
                continue
            logger.info("committed %s v%d (%d examples)", name, stored.version, training_count)
            return stored
        raise RepositoryError(f"could not allocate a version for {name!r}")


class InMemoryRepository(ModelRepository):
    """Process-local repository, used by tests and dashboard sessions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._models: List[StoredModel] = []
        self._examples: List[TrainingExample] = []

    def save_model(self, stored: StoredModel) -> None:
        with self._lock:
            if any(m.name == stored.name and m.version == stored.version for m in self._models):
                raise VersionConflictError(stored.name, stored.version)
            self._models.append(stored)

    def get_latest_model(self, name: str) -> Optional[StoredModel]:
        with self._lock:
            candidates = [m for m in self._models if m.name == name]
        if not candidates:
            return None
        return max(candidates, key=lambda m: (m.version, m.created_at))

    def commit_model(self, name, model, metrics, training_count) -> StoredModel:
        # lock is not reentrant; allocate and append in one critical section
        with self._lock:
            versions = [m.version for m in self._models if m.name == name]
            stored = StoredModel(
                name=name,
                version=max(versions, default=0) + 1,
                model=model,
                metrics=metrics,
                training_count=training_count,
            )
            self._models.append(stored)
        logger.info("committed %s v%d (%d examples)", name, stored.version, training_count)
        return stored

    def add_example(self, example: TrainingExample) -> None:
        with self._lock:
            self._examples.append(example)

    def get_all_examples(self, limit: int = DEFAULT_EXAMPLE_LIMIT) -> List[TrainingExample]:
        with self._lock:
            return list(self._examples[:limit])

    def count_examples(self) -> int:
        with self._lock:
            return len(self._examples)


class FileRepository(ModelRepository):
    """JSON files on disk.

    Layout::

        <root>/examples.jsonl                one TrainingExample per line
        <root>/models/<name>/<version>.json  one StoredModel per file

    Model files are created exclusively, so a version can be written
    once even with several processes sharing ``root``.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._lock = threading.Lock()

    @property
    def examples_path(self) -> Path:
        return self.root / "examples.jsonl"

    def _model_dir(self, name: str) -> Path:
        return self.root / "models" / name

    def save_model(self, stored: StoredModel) -> None:
        path = self._model_dir(stored.name) / f"{stored.version:06d}.json"
        tmp = path.with_name(f".{path.stem}.{uuid.uuid4().hex}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(stored.model_dump_json(), encoding="utf-8")
            # link() fails if the target exists, readers never see a partial file
            os.link(tmp, path)
        except FileExistsError as e:
            raise VersionConflictError(stored.name, stored.version) from e
        except OSError as e:
            raise RepositoryError(f"failed to write {path}: {e}") from e
        finally:
            tmp.unlink(missing_ok=True)

    def get_latest_model(self, name: str) -> Optional[StoredModel]:
        model_dir = self._model_dir(name)
        try:
            files = sorted(model_dir.glob("*.json")) if model_dir.exists() else []
            records = [StoredModel.model_validate_json(p.read_text(encoding="utf-8")) for p in files]
        except (OSError, ValidationError) as e:
            raise RepositoryError(f"failed to read models for {name!r}: {e}") from e
        if not records:
            return None
        return max(records, key=lambda m: (m.version, m.created_at))

    def add_example(self, example: TrainingExample) -> None:
        line = example.model_dump_json() + "\n"
        with self._lock:
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                with open(self.examples_path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise RepositoryError(f"failed to append example: {e}") from e

    def _read_lines(self) -> List[str]:
        if not self.examples_path.exists():
            return []
        try:
            with open(self.examples_path, encoding="utf-8") as f:
                return [ln for ln in f.read().splitlines() if ln.strip()]
        except OSError as e:
            raise RepositoryError(f"failed to read examples: {e}") from e

    def get_all_examples(self, limit: int = DEFAULT_EXAMPLE_LIMIT) -> List[TrainingExample]:
        with self._lock:
            lines = self._read_lines()[:limit]
        try:
            return [TrainingExample.model_validate_json(ln) for ln in lines]
        except ValidationError as e:
            raise RepositoryError(f"corrupt example record: {e}") from e

    def count_examples(self) -> int:
        with self._lock:
            return len(self._read_lines())
