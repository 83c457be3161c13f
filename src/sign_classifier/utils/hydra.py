"""Hydra ConfigStore helpers."""

from __future__ import annotations

from typing import Any

from hydra.core.config_store import ConfigStore
from loguru import logger


def register(
    target: type[Any] | None = None,
    *,
    group: str,
    name: str | None = None,
    **defaults: Any,
) -> type[Any] | Any:
    """Store a ``_target_`` node for the decorated class in Hydra's ConfigStore.

    Usable bare (``@register(group="builder")``) or with a name and default
    constructor arguments, which become keys of the stored node and can be
    overridden from the command line (``builder.alpha=2.0``).

    Arguments:
        target: The class being registered.
        group: ConfigStore group the node is selectable under.
        name: Option name within the group. Defaults to the class name.
        **defaults: Default constructor arguments stored alongside ``_target_``.
    """

    def _store(cls: type[Any]) -> type[Any]:
        option = name or cls.__name__
        node: dict[str, Any] = {"_target_": f"{cls.__module__}.{cls.__qualname__}"}
        node.update(defaults)
        logger.debug(f"Registering {cls.__name__} as {group}={option}")
        ConfigStore.instance().store(group=group, name=option, node=node)
        return cls

    if target is None:
        return _store
    return _store(target)


def registered_options(group: str) -> list[str]:
    """Names of the options stored under ``group``, sorted."""
    repo = ConfigStore.instance().repo
    entries = repo.get(group, {})
    return sorted(key.removesuffix(".yaml") for key in entries)
