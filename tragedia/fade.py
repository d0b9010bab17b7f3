"""Layered full-screen fades that move their opacity towards a target."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

MAX_LAYER = 10


@dataclass
class FadeLayer:
    """One fade layer: current opacity, target opacity and image."""

    alpha: float = 0.0
    target: float = 0.0
    image: Any = None


class Fade:
    """A small stack of fade layers indexed from 0 to ``MAX_LAYER``."""

    def __init__(self) -> None:
        self.cache: list[Any] = []
        self.layers: list[FadeLayer | None] = []

    def update(self, dt: float) -> None:
        """Move every layer with an image towards its target opacity."""
        for layer in self.layers:
            if layer is None or layer.image is None:
                continue
            if layer.alpha < layer.target:
                layer.alpha = min(layer.alpha + dt, layer.target)
            elif layer.alpha > layer.target:
                layer.alpha = max(layer.alpha - dt, layer.target)

    def clear(self) -> None:
        self.layers.clear()

    def add_cache(self, image: Any) -> None:
        self.cache.append(image)

    def _layer(self, index: int) -> FadeLayer:
        if index < 0 or index > MAX_LAYER:
            raise ValueError(f"fade layer out of range: {index}")
        if index >= len(self.layers):
            self.layers.extend([None] * (index + 1 - len(self.layers)))
        layer = self.layers[index]
        if layer is None:
            layer = self.layers[index] = FadeLayer()
        return layer

    def set_image(
        self, layer: int, image: Any, target_alpha: float, alpha: float = -1.0
    ) -> None:
        """Set a layer's image and target; a negative ``alpha`` keeps the current one."""
        entry = self._layer(layer)
        if alpha >= 0.0:
            entry.alpha = alpha
        entry.target = target_alpha
        entry.image = image

    def set(self, layer: int, target_alpha: float, alpha: float = -1.0) -> None:
        """Set a layer's target, giving it the first cached image if it has none."""
        entry = self._layer(layer)
        if entry.image is None and self.cache:
            entry.image = self.cache[0]
        if alpha >= 0.0:
            entry.alpha = alpha
        entry.target = target_alpha

    def get_pct(self, layer: int) -> float:
        if not 0 <= layer < len(self.layers):
            return 0.0
        entry = self.layers[layer]
        return entry.alpha if entry is not None else 0.0

    def visible_layers(self) -> list[FadeLayer]:
        """Layers to draw, from the highest index down, skipping invisible ones."""
        return [
            layer
            for layer in reversed(self.layers)
            if layer is not None and layer.alpha > 0.0 and layer.image is not None
        ]