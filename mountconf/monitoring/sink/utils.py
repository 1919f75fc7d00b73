# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Sink plugins: discovery, registration, documentation and construction."""

import importlib
import inspect
import logging
import pkgutil
import textwrap
from types import ModuleType
from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Type,
    TypeVar,
)

import click
from mountconf.monitoring.sink.protocol import SinkImpl
from omegaconf import OmegaConf as oc

logger = logging.getLogger(__name__)

T = TypeVar("T")
Factory = Callable[..., T]
ClassDecorator = Callable[[Type[T]], Type[T]]
Register = Callable[[str], ClassDecorator[T]]


def discover(package: ModuleType) -> Dict[str, ModuleType]:
    """Import every module of a namespace package so that their `register`
    decorators run."""
    try:
        path = package.__path__
    except AttributeError as e:
        raise RuntimeError(f"{package.__name__} is not a package") from e

    modules = {}
    for info in pkgutil.iter_modules(path, package.__name__ + "."):
        logger.debug(f"Loading plugin module {info.name}")
        modules[info.name] = importlib.import_module(info.name)
    return modules


def make_register(registry: MutableMapping[str, Factory[T]]) -> Register[T]:
    """Build a `@register(name)` class decorator which stores the class in
    `registry`. Registering a name twice is an error."""

    def register(name: str) -> ClassDecorator[T]:
        def decorator(cls: Type[T]) -> Type[T]:
            if (existing := registry.get(name)) is not None:
                raise RuntimeError(f"'{name}' is already registered to {existing}")
            registry[name] = cls
            return cls

        return decorator

    return register


def _options_of(factory: Factory[Any]) -> Dict[str, inspect.Parameter]:
    # sink options are the keyword-only parameters of the factory
    return {
        name: p
        for name, p in inspect.signature(factory).parameters.items()
        if p.kind is p.KEYWORD_ONLY
    }


def describe_sinks(registry: Mapping[str, Factory[SinkImpl]]) -> str:
    """Help text listing each sink, its options and its docstring, by name."""
    parts = []
    for name, factory in sorted(registry.items()):
        options = [
            opt if p.default is p.empty else f"{opt} (default: {p.default!r})"
            for opt, p in _options_of(factory).items()
        ]
        parts.append(f"{name} - (from module: '{factory.__module__}')")
        parts.append(f"  Options: {', '.join(options) or 'none'}")
        doc = inspect.getdoc(factory) or "No documentation found."
        parts.append(textwrap.indent(doc, " " * 2))
        parts.append("")
    return "\n".join(parts)


def _explain_bad_options(
    name: str, factory: Factory[SinkImpl], given: Collection[str]
) -> Optional[str]:
    options = _options_of(factory)
    unknown = sorted(set(given) - options.keys())
    missing = sorted(
        opt for opt, p in options.items() if p.default is p.empty and opt not in given
    )
    lines: List[str] = []
    if unknown:
        lines.append(f"Sink '{name}' got unrecognized options: {', '.join(unknown)}")
    if missing:
        lines.append(f"Sink '{name}' is missing required options: {', '.join(missing)}")
    if not lines:
        return None
    lines.append(f"Its options are: {', '.join(sorted(options)) or 'none'}")
    return "\n".join(lines)


def make_sink(
    sink: str,
    sink_opts: Collection[str],
    registry: Mapping[str, Factory[SinkImpl]],
) -> SinkImpl:
    """Instantiate a registered sink from OmegaConf dot-list options, e.g.
    `file_path=/tmp/results.json`."""
    try:
        factory = registry[sink]
    except KeyError:
        raise click.UsageError(
            f"Sink '{sink}' could not be found. Registered sinks: {sorted(registry)}"
        )
    kwargs = oc.to_container(oc.from_dotlist(list(sink_opts)))
    assert isinstance(kwargs, dict)
    if (msg := _explain_bad_options(sink, factory, kwargs)) is not None:
        raise click.UsageError(msg)

    sink_impl = factory(**kwargs)
    if not isinstance(sink_impl, SinkImpl):
        raise click.ClickException(
            f"Sink '{sink}' from {factory.__module__} does not implement {SinkImpl.__name__}"
        )
    return sink_impl
