"""Model info callback: reports layer topology and parameter counts."""

from __future__ import annotations

import lightning as L
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table


class ModelInfoCallback(L.Callback):
    """Print the layer stack of the network at training start.

    One row per dense layer: input width, output width, activation and
    parameter count, followed by a one-line summary in the log.

    Args:
        console: Rich console to print to; a default stdout console if omitted.
    """

    def __init__(self, console: Console | None = None) -> None:
        super().__init__()
        self.console = console or Console()

    def on_fit_start(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        layers = list(getattr(pl_module, "layers", []))

        table = Table(
            title="Network Topology",
            header_style="bold magenta",
            box=box.SQUARE,
            show_lines=True,
        )
        table.add_column("Layer", style="cyan")
        table.add_column("In", justify="right")
        table.add_column("Out", justify="right")
        table.add_column("Activation", style="green")
        table.add_column("Params", justify="right")

        for i, layer in enumerate(layers):
            kind = "output" if i == len(layers) - 1 else f"hidden {i}"
            params = sum(p.numel() for p in layer.parameters())
            table.add_row(
                kind,
                str(layer.in_features),
                str(layer.out_features),
                repr(layer.activation),
                f"{params:,}",
            )
        self.console.print(table)

        total_params = sum(p.numel() for p in pl_module.parameters())
        trainable_params = sum(
            p.numel() for p in pl_module.parameters() if p.requires_grad
        )
        logger.info(
            f"Model: {type(pl_module).__name__} | Layers: {len(layers)} | "
            f"Params: {total_params:,} ({trainable_params:,} trainable)"
        )
