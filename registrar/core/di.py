"""Dependency injection: dependency-injector's API plus the few helpers registrar adds."""

from __future__ import annotations

__all__ = [
    "Container",
    "NotReady",
    "Provider",
    "Provide",
    "as_",
    "inject",
    "providers",
    "containers",
    "wire_imported",
]

import sys
import typing as t

import dependency_injector.containers as containers
import dependency_injector.providers as providers
from dependency_injector.containers import Container
from dependency_injector.providers import Provider
from dependency_injector.wiring import inject, Provide, TypeModifier

TAs = t.TypeVar("TAs")


def as_(type_: t.Type[TAs]) -> TypeModifier:
    """Coerce an injected configuration section to `type_` (wiring.as_ is untyped)"""
    return TypeModifier(type_)


class NotReady(object):
    """Placeholder for container values that only exist once the container has booted"""

    _instance: t.ClassVar[NotReady | None] = None

    def __new__(cls) -> NotReady:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<NotReady>"


def wire_imported(container: containers.DeclarativeContainer, package: str = "registrar") -> list[str]:
    """Wire every already-imported module of `package`; returns their names.

    Command and storage modules are imported at startup, before the
    container boots, so wiring what is in sys.modules covers them all.
    """
    names = sorted(n for n in list(sys.modules) if n == package or n.startswith(f"{package}."))
    container.wire(modules=[sys.modules[n] for n in names])
    return names
