from __future__ import annotations

from typing import Any, Callable, Dict

from ports import MailSourcePort


_REGISTRY: Dict[str, Callable[..., MailSourcePort]] = {}


def register(name: str, factory: Callable[..., MailSourcePort]) -> None:
    _REGISTRY[name] = factory


def get_source(name: str, **kwargs: Any) -> MailSourcePort:
    if name not in _REGISTRY:
        raise KeyError(f"Unknown source: {name}")
    return _REGISTRY[name](**kwargs)


def available_sources() -> Dict[str, Callable[..., MailSourcePort]]:
    return dict(_REGISTRY)


def _register_defaults() -> None:
    from sources.file_source import FileSource
    from sources.gmail_source import GmailSource

    register("gmail", GmailSource)
    register("file", FileSource)


_register_defaults()
