"""JSON Lines manifests listing labeled images."""

from __future__ import annotations

from pathlib import Path

import orjson
from loguru import logger

from sign_classifier.data.dataset import LoadableImage
from sign_classifier.errors import InvalidConfigurationError
from sign_classifier.labels import SignClassification


def read_manifest(path: Path) -> list[LoadableImage]:
    """Read ``{"image": ..., "label": ...}`` records, one per line.

    Image paths are resolved relative to the manifest's directory.  Records
    whose label is not a :class:`SignClassification` name are skipped with a
    warning; blank lines are ignored.  Whether the image files exist is only
    checked when they are loaded.

    Raises:
        InvalidConfigurationError: If a line is not a JSON object with string
            ``image`` and ``label`` fields.  The message names the line.
    """
    path = Path(path)
    root = path.parent
    samples: list[LoadableImage] = []
    skipped = 0
    with open(path, "rb") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = orjson.loads(line)
            except orjson.JSONDecodeError as e:
                raise InvalidConfigurationError(
                    f"{path}:{lineno}: malformed JSON: {e}"
                ) from e
            if not isinstance(record, dict):
                raise InvalidConfigurationError(
                    f"{path}:{lineno}: expected a JSON object, got {type(record).__name__}"
                )
            missing = [
                key
                for key in ("image", "label")
                if not isinstance(record.get(key), str)
            ]
            if missing:
                raise InvalidConfigurationError(
                    f"{path}:{lineno}: missing or non-string field(s) {', '.join(missing)}"
                )
            label = record["label"]
            if label not in SignClassification.__members__:
                skipped += 1
                continue
            samples.append(
                LoadableImage(
                    path=root / record["image"], label=SignClassification[label]
                )
            )
    if skipped:
        logger.warning(f"Skipped {skipped} record(s) with unknown labels in {path}")
    logger.debug(f"Read {len(samples)} samples from {path}")
    return samples
