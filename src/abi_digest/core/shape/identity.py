# src/abi_digest/core/shape/identity.py
"""
TypeIdentity — identificador estável e internado de um tipo digerível.

Uma TypeIdentity é composta pelo nome totalmente qualificado do tipo e,
quando aplicável, pelas identidades dos argumentos genéricos da
instanciação. Sua forma canônica textual (`name` ou `name[a,b]`) é a
chave usada no digest, no cache e no arquivo de snapshot.

Princípios fundamentais:
    - O mesmo tipo lógico produz a mesma identidade em qualquer processo
    - Nenhum endereço de memória ou `id()` participa da identidade
    - Identidades são internadas: a mesma forma canônica retorna o mesmo objeto

Decisões arquiteturais:
    - Classes usam `module.qualname`, a menos que declarem `__abi_name__`
    - Builtins usam apenas o nome (`list`, `dict`, `str`)
    - Igualdade e hash são definidos pela forma canônica textual

Invariantes:
    - `TypeIdentity.parse(str(identity)) is identity` para identidades internadas
    - A forma canônica nunca contém espaços em branco

Limites explícitos:
    - Não decompõe tipos (responsabilidade do walker)
    - Não calcula digests
"""

from __future__ import annotations

import threading
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .primitives import FixedLen, Primitive


@dataclass(frozen=True, eq=False)
class TypeIdentity:
    """
    Identidade estável de um tipo (nome qualificado + argumentos genéricos).

    Instâncias devem ser obtidas por `intern_identity`, `TypeIdentity.parse`
    ou `identity_of`; a construção direta funciona, mas não compartilha a
    instância internada.
    """

    name: str
    args: Tuple["TypeIdentity", ...] = ()
    canonical: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.args:
            rendered = f"{self.name}[{','.join(a.canonical for a in self.args)}]"
        else:
            rendered = self.name
        object.__setattr__(self, "canonical", "".join(rendered.split()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeIdentity):
            return NotImplemented
        return self.canonical == other.canonical

    def __hash__(self) -> int:
        return hash(self.canonical)

    def __lt__(self, other: "TypeIdentity") -> bool:
        return self.canonical < other.canonical

    def __str__(self) -> str:
        return self.canonical

    @classmethod
    def parse(cls, text: str) -> "TypeIdentity":
        """Retorna a identidade internada para a forma canônica `text`."""
        canonical = "".join(str(text).split())
        if not canonical:
            raise ValueError("TypeIdentity não pode ser vazia")
        with _INTERN_LOCK:
            existing = _INTERN.get(canonical)
            if existing is None:
                existing = cls(name=canonical)
                _INTERN[canonical] = existing
            return existing


_INTERN: Dict[str, TypeIdentity] = {}
_INTERN_LOCK = threading.Lock()


def intern_identity(name: str, args: Tuple[TypeIdentity, ...] = ()) -> TypeIdentity:
    candidate = TypeIdentity(name=name, args=tuple(args))
    with _INTERN_LOCK:
        existing = _INTERN.get(candidate.canonical)
        if existing is None:
            _INTERN[candidate.canonical] = candidate
            existing = candidate
        return existing


def class_name(cls: type) -> str:
    """Nome estável de uma classe: `__abi_name__` próprio ou `module.qualname`."""
    pinned = cls.__dict__.get("__abi_name__")
    if isinstance(pinned, str) and pinned.strip():
        return pinned
    module = getattr(cls, "__module__", None)
    if module in (None, "builtins"):
        return cls.__qualname__
    return f"{module}.{cls.__qualname__}"


def identity_of(hint: Any) -> TypeIdentity:
    """
    Deriva a TypeIdentity de uma classe ou type hint concreto.

    Regras:
        - None / NoneType          → `()`
        - Annotated[..., Primitive] → nome do primitivo (`u64`)
        - Annotated[..., FixedLen]  → `[elem;N]`
        - Optional[T]               → `Option[T]`
        - Union[A, B]               → `Union[A,B]`
        - alias genérico            → `origem[args]`
        - classe                    → `class_name(cls)`

    Hints não reconhecidos recebem sua representação textual como nome,
    o suficiente para identificar o tipo em mensagens de erro.
    """
    if hint is None or hint is type(None):
        return intern_identity("()")

    if isinstance(hint, typing.TypeVar):
        return intern_identity(f"~{hint.__name__}")

    if hint is Ellipsis:
        return intern_identity("...")

    origin = typing.get_origin(hint)

    if origin is typing.Annotated:
        base = hint.__origin__
        for marker in hint.__metadata__:
            if isinstance(marker, Primitive):
                return intern_identity(marker.name)
        for marker in hint.__metadata__:
            if isinstance(marker, FixedLen):
                return intern_identity(f"[{_element_identity(base).canonical};{marker.length}]")
        return identity_of(base)

    if origin is typing.Union or origin is types.UnionType:
        members = typing.get_args(hint)
        present = [m for m in members if m is not type(None)]
        if len(members) == 2 and len(present) == 1:
            return intern_identity("Option", (identity_of(present[0]),))
        return intern_identity("Union", tuple(identity_of(m) for m in members))

    if origin is not None:
        args = tuple(identity_of(a) for a in typing.get_args(hint))
        name = class_name(origin) if isinstance(origin, type) else str(origin)
        return intern_identity(name, args)

    if isinstance(hint, type):
        return intern_identity(class_name(hint))

    return intern_identity(str(hint))


def _element_identity(base: Any) -> TypeIdentity:
    if base in (bytes, bytearray):
        return intern_identity("u8")
    args = typing.get_args(base)
    if args:
        return identity_of(args[0])
    return identity_of(base)
