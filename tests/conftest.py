"""Shared pytest fixtures for sign_classifier tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from sign_classifier.data import ImageSample
from sign_classifier.labels import SignClassification


def make_sign(size: int = 40, radius: int = 12) -> np.ndarray:
    """Opaque grey RGBA square with a red disc in the middle."""
    image = np.zeros((size, size, 4), dtype=np.uint8)
    image[:, :] = (128, 128, 128, 255)
    centre = (size // 2, size // 2)
    cv2.circle(image, centre, radius, (220, 20, 20, 255), thickness=-1)
    return image


@pytest.fixture()
def sign_image() -> np.ndarray:
    return make_sign()


@pytest.fixture()
def tiny_samples() -> list[ImageSample]:
    """Three 2x2 RGBA images, one per class STOP, YIELD, PRIORITY_ROAD."""
    rng = np.random.default_rng(0)
    labels = [
        SignClassification.STOP,
        SignClassification.YIELD,
        SignClassification.PRIORITY_ROAD,
    ]
    return [
        ImageSample(
            image=rng.integers(0, 256, size=(2, 2, 4), dtype=np.uint8),
            label=label,
            name=f"tiny_{i}",
        )
        for i, label in enumerate(labels)
    ]


@pytest.fixture()
def write_manifest(tmp_path: Path) -> Callable[[str, list[str]], Path]:
    """Factory writing PNG images plus a JSONL manifest under ``tmp_path``.

    Each entry is a label name; images are 8x8 RGBA filled with a per-class
    colour so that classes are separable.
    """

    def _write(name: str, entries: list[str]) -> Path:
        split_dir = tmp_path / name
        split_dir.mkdir()
        lines: list[str] = []
        for i, label in enumerate(entries):
            fname = f"img_{i:02d}.png"
            index = (
                SignClassification[label].ordinal
                if label in SignClassification.__members__
                else 0
            )
            colour = (80 * index % 256, 255 - 60 * index % 256, 40, 255)
            Image.new("RGBA", (8, 8), color=colour).save(split_dir / fname)
            lines.append(json.dumps({"image": fname, "label": label}))
        manifest = split_dir / "manifest.jsonl"
        manifest.write_text("\n".join(lines) + "\n")
        return manifest

    return _write
