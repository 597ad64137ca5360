# src/abi_digest/core/shape/walker.py
"""
Type Shape Walker — decomposição canônica de tipos Python em ShapeNodes.

O walker transforma a definição estrutural de um tipo em uma árvore de
shape canônica. A decomposição vem de uma capacidade do próprio tipo
(`abi_shape`) ou, na ausência dela, da reflexão nativa da linguagem.

Fontes de decomposição (em ordem de precedência):
    1. classmethod `abi_shape(cls, walker) -> ShapeNode`
    2. `enum.Enum`                 → EnumShape (discriminante = valor inteiro, senão ordinal)
    3. dataclass                   → StructShape em ordem de declaração
    4. `typing.NamedTuple`         → StructShape em ordem de declaração
    5. hints estruturais           → Leaf / Sequence / Map / Enum (Optional, Union)

Travessia de tipos nomeados:
    - Antes de descer em um tipo nomeado, o walker consulta o cache
      (apenas entradas reutilizáveis) e chama `VisitedTypes.enter`
    - Ciclo detectado → `ReferenceShape(identity)`, sem `leave`
    - Conclusão normal → `leave`, fold do par (identidade, shape) e o
      tipo entra no shape do pai como `FoldedShape` (digest-de-digests)

Reuso de digests aninhados:
    Um tipo nomeado que participa de um ciclo com outro tipo nomeado tem
    digest dependente do ponto de entrada. Esses tipos são marcados como
    não reutilizáveis pelo cache e recalculados quando aparecem como filhos
    em outro cálculo. Auto-referência direta (ex.: `Node.next:
    Optional[Node]`) não afeta o reuso.

    Dentro de um mesmo walker, cada tipo percorrido é memorizado junto com
    os tipos nomeados que sua subárvore alcançou e quais deles estavam na
    pilha. Uma nova ocorrência reaproveita o digest quando esse conjunto de
    ancestrais ativos coincide; o trabalho cresce com o número de tipos
    distintos, não com o número de caminhos do grafo.

Genéricos:
    Instanciações (`Box[U64]`) ligam os TypeVars da classe aos argumentos.
    Subclasses de genéricos parametrizados (`class Sub(Box[U64])`) herdam
    as ligações de `__orig_bases__` ao longo do MRO. Hints que mencionam
    TypeVars são substituídos antes de qualquer derivação de identidade.
    TypeVar sem ligação → UnsupportedShape.

Invariantes:
    - Um walker pertence a um único cálculo de topo e não é thread-safe
    - Ao término de `digest`, o registro de visitados está vazio
    - Digest memorizado é idêntico ao que uma nova travessia produziria

Limites explícitos:
    - Não serializa valores
    - Não decide quais tipos são pontos de entrada (TypeCatalog)
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import inspect
import types
import typing
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from abi_digest.core.digest.accumulator import fold
from abi_digest.core.exceptions import RegistryInvariantError, UnsupportedShape
from abi_digest.core.types import Digest

from .identity import TypeIdentity, identity_of
from .nodes import (
    SHAPE_NODE_TYPES,
    UNIT,
    EnumShape,
    FoldedShape,
    LeafShape,
    MapShape,
    ReferenceShape,
    SequenceShape,
    ShapeNode,
    StructShape,
)
from .primitives import FixedLen, Primitive, PrimitiveKind
from .visited import VisitedTypes

if typing.TYPE_CHECKING:
    from abi_digest.core.digest.cache import DigestCache


NoneType = type(None)

_SEQUENCE_ORIGINS = (
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_STRUCTURAL_CLASSES = frozenset(
    (int, float, bool, str, bytes, bytearray, tuple, NoneType, object)
    + _SEQUENCE_ORIGINS
    + _MAPPING_ORIGINS
)

U8_LEAF = LeafShape(PrimitiveKind.UINT, 8)


class _Frame:
    __slots__ = ("identity", "reusable", "seen")

    def __init__(self, identity: TypeIdentity) -> None:
        self.identity = identity
        self.reusable = True
        self.seen: Set[TypeIdentity] = set()


class _Memo:
    """Digest de um tipo nomeado já percorrido neste walker."""

    __slots__ = ("seen", "active", "digest", "reusable")

    def __init__(
        self,
        seen: FrozenSet[TypeIdentity],
        active: FrozenSet[TypeIdentity],
        digest: Digest,
        reusable: bool,
    ) -> None:
        self.seen = seen
        self.active = active
        self.digest = digest
        self.reusable = reusable


class ShapeWalker:
    """
    Walker de um único cálculo de digest de topo.

    Args:
        cache: Cache de digests consultado para filhos reutilizáveis e
            alimentado com os digests independentes de contexto.
        visited: Registro de tipos em andamento (um novo por padrão).
    """

    def __init__(
        self,
        cache: Optional["DigestCache"] = None,
        visited: Optional[VisitedTypes] = None,
    ) -> None:
        self.cache = cache
        self.visited = visited if visited is not None else VisitedTypes()
        self._frames: List[_Frame] = []
        self._env: List[Dict[Any, Any]] = [{}]
        self._memo: Dict[TypeIdentity, List[_Memo]] = {}

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------

    def walk(self, hint: Any) -> ShapeNode:
        """Retorna o ShapeNode de `hint` no contexto atual da travessia."""
        hint = self._resolve(hint)
        named = self._named_class(hint)
        if named is not None:
            node, _ = self._walk_named(hint, named)
            return node
        return self._walk_structural(hint)

    def digest(self, source: Any) -> Tuple[Digest, bool]:
        """
        Calcula o digest de topo de `source`.

        Returns:
            (digest, reusable): `reusable` indica se o digest independe
            do ponto de entrada e pode ser reaproveitado como filho.

        Raises:
            UnsupportedShape: Se algum tipo alcançável não tem shape canônico.
            RegistryInvariantError: Se o registro de visitados termina sujo.
        """
        if self._frames or len(self.visited):
            raise RegistryInvariantError(
                message="ShapeWalker reutilizado durante uma travessia",
                details={"depth": len(self.visited)},
            )

        hint = self._resolve(source)
        named = self._named_class(hint)
        if named is not None:
            node, reusable = self._walk_named(hint, named)
            if not isinstance(node, FoldedShape):
                raise RegistryInvariantError(
                    message=f"Tipo de topo não foi reduzido: {identity_of(hint)}",
                    details={"type_identity": identity_of(hint).canonical},
                )
            result = node.digest
        else:
            result = fold(identity_of(hint), self._walk_structural(hint))
            reusable = True

        if len(self.visited):
            raise RegistryInvariantError(
                message="Registro de visitados não vazio ao fim do cálculo",
                details={"depth": len(self.visited)},
            )
        return result, reusable

    # ------------------------------------------------------------------
    # Tipos nomeados
    # ------------------------------------------------------------------

    def _walk_named(self, hint: Any, cls: type) -> Tuple[ShapeNode, bool]:
        identity = identity_of(hint)

        if self.cache is not None:
            cached = self.cache.lookup(identity)
            if cached is not None:
                return FoldedShape(identity, cached), True

        if identity not in self.visited:
            memo = self._recall(identity)
            if memo is not None:
                self._note(identity, memo.seen)
                for ancestor in memo.active:
                    self._mark_from(self.visited.depth_of(ancestor))
                return FoldedShape(identity, memo.digest), memo.reusable

        if not self.visited.enter(identity):
            self._note(identity)
            self._mark_cycle(identity)
            return ReferenceShape(identity), False

        frame = _Frame(identity)
        self._frames.append(frame)
        self._env.append(self._bindings(hint, cls, identity))
        try:
            shape = self._describe_named(cls, identity)
        finally:
            self._env.pop()
            self._frames.pop()
            self.visited.leave(identity)

        digest = fold(identity, shape)
        if frame.reusable and self.cache is not None:
            self.cache.publish(identity, digest, reusable=True)

        seen = frozenset(frame.seen - {identity})
        active = frozenset(i for i in seen if i in self.visited)
        self._memo.setdefault(identity, []).append(_Memo(seen, active, digest, frame.reusable))
        self._note(identity, seen)
        return FoldedShape(identity, digest), frame.reusable

    def _recall(self, identity: TypeIdentity) -> Optional[_Memo]:
        # Válido se os tipos alcançados que estão na pilha agora são os mesmos de antes.
        for memo in self._memo.get(identity, ()):
            if all((i in self.visited) == (i in memo.active) for i in memo.seen):
                return memo
        return None

    def _note(self, identity: TypeIdentity, seen: FrozenSet[TypeIdentity] = frozenset()) -> None:
        if self._frames:
            top = self._frames[-1].seen
            top.add(identity)
            top.update(seen)

    def _mark_cycle(self, identity: TypeIdentity) -> None:
        depth = self.visited.depth_of(identity)
        if depth is None:
            raise RegistryInvariantError(
                message=f"Ciclo para tipo fora do registro: {identity}",
                details={"type_identity": identity.canonical},
            )
        # Frames da profundidade `depth` ao topo formam um ciclo entre tipos nomeados.
        if len(self._frames) - 1 > depth:
            self._mark_from(depth)

    def _mark_from(self, depth: Optional[int]) -> None:
        if depth is None:
            raise RegistryInvariantError(
                message="Digest memorizado referencia tipo fora do registro",
                details={"depth": len(self.visited)},
            )
        for frame in self._frames[depth:]:
            frame.reusable = False

    def _bindings(self, hint: Any, cls: type, identity: TypeIdentity) -> Dict[Any, Any]:
        if typing.get_origin(hint) is None:
            return {}
        params = getattr(cls, "__parameters__", ())
        args = typing.get_args(hint)
        if len(params) != len(args):
            raise UnsupportedShape.for_type(
                identity, f"esperados {len(params)} argumentos genéricos, recebidos {len(args)}"
            )
        return dict(zip(params, args))

    def _class_envs(self, cls: type) -> Dict[type, Dict[Any, Any]]:
        """Ligações de TypeVars por classe do MRO, herdadas de `__orig_bases__`."""
        envs: Dict[type, Dict[Any, Any]] = {cls: self._env[-1]}
        for klass in cls.__mro__:
            env = envs.get(klass)
            if env is None:
                continue
            for base in klass.__dict__.get("__orig_bases__", ()):
                origin = typing.get_origin(base)
                if not isinstance(origin, type) or origin is typing.Generic or origin in envs:
                    continue
                params = getattr(origin, "__parameters__", ())
                envs[origin] = {
                    param: _substitute(arg, env)
                    for param, arg in zip(params, typing.get_args(base))
                    if _is_bound(arg, env)
                }
        return envs

    def _field_hint(self, cls: type, name: str, hint: Any, envs: Dict[type, Dict[Any, Any]]) -> Any:
        # TypeVars de um campo herdado pertencem à classe que o declara.
        for klass in cls.__mro__:
            if name in inspect.get_annotations(klass):
                return _substitute(hint, envs.get(klass, {}))
        return hint

    def _describe_named(self, cls: type, identity: TypeIdentity) -> ShapeNode:
        capability = getattr(cls, "abi_shape", None)
        if callable(capability):
            node = capability(self)
            if not isinstance(node, SHAPE_NODE_TYPES):
                raise UnsupportedShape.for_type(
                    identity, f"abi_shape retornou {type(node).__name__}, esperado ShapeNode"
                )
            return node

        if issubclass(cls, enum.Enum):
            return self._enum_shape(cls)

        if dataclasses.is_dataclass(cls):
            hints = self._type_hints(cls, identity)
            envs = self._class_envs(cls)
            fields = [
                self.walk(self._field_hint(cls, f.name, hints[f.name], envs))
                for f in dataclasses.fields(cls)
                if not f.metadata.get("abi_skip", False)
            ]
            return StructShape(tuple(fields)) if fields else UNIT

        if issubclass(cls, tuple) and hasattr(cls, "_fields"):
            hints = self._type_hints(cls, identity)
            missing = [name for name in cls._fields if name not in hints]
            if missing:
                raise UnsupportedShape.for_type(identity, f"campos sem anotação: {missing}")
            fields = [self.walk(hints[name]) for name in cls._fields]
            return StructShape(tuple(fields)) if fields else UNIT

        raise UnsupportedShape.for_type(
            identity, "tipo sem decomposição (abi_shape, dataclass, NamedTuple ou Enum)"
        )

    @staticmethod
    def _enum_shape(cls: type) -> EnumShape:
        variants = []
        for ordinal, member in enumerate(cls):
            value = member.value
            if isinstance(value, int) and not isinstance(value, bool):
                discriminant = int(value)
            else:
                discriminant = ordinal
            variants.append((discriminant, UNIT))
        return EnumShape(tuple(variants))

    @staticmethod
    def _type_hints(cls: type, identity: TypeIdentity) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(cls, include_extras=True)
        except (NameError, TypeError) as exc:
            raise UnsupportedShape.for_type(identity, f"anotações não resolvidas: {exc}") from exc

    # ------------------------------------------------------------------
    # Hints estruturais
    # ------------------------------------------------------------------

    def _walk_structural(self, hint: Any) -> ShapeNode:
        if hint is None or hint is NoneType:
            return UNIT

        origin = typing.get_origin(hint)

        if origin is typing.Annotated:
            return self._walk_annotated(hint)

        if origin is typing.Union or origin is types.UnionType:
            members = typing.get_args(hint)
            present = [m for m in members if m is not NoneType]
            if len(members) == 2 and len(present) == 1:
                return EnumShape(((0, UNIT), (1, self.walk(present[0]))))
            return EnumShape(tuple((i, self.walk(m)) for i, m in enumerate(members)))

        if origin is not None:
            args = typing.get_args(hint)
            if origin is tuple:
                if len(args) == 2 and args[1] is Ellipsis:
                    return SequenceShape(self.walk(args[0]))
                if not args:
                    return UNIT
                return StructShape(tuple(self.walk(a) for a in args))
            if origin in _SEQUENCE_ORIGINS and len(args) == 1:
                return SequenceShape(self.walk(args[0]))
            if origin in _MAPPING_ORIGINS and len(args) == 2:
                return MapShape(self.walk(args[0]), self.walk(args[1]))
            raise UnsupportedShape.for_type(identity_of(hint), "construção genérica não suportada")

        if hint is bool:
            return LeafShape(PrimitiveKind.BOOL, 8)
        if hint is float:
            return LeafShape(PrimitiveKind.FLOAT, 64)
        if hint is str:
            return LeafShape(PrimitiveKind.STR, 0)
        if hint in (bytes, bytearray):
            return SequenceShape(U8_LEAF)
        if hint is int:
            raise UnsupportedShape.for_type(
                identity_of(hint), "int sem largura declarada; use U8..U128 ou I8..I128"
            )
        if hint in _STRUCTURAL_CLASSES:
            raise UnsupportedShape.for_type(identity_of(hint), "container sem parâmetros de tipo")
        raise UnsupportedShape.for_type(identity_of(hint), "hint sem representação canônica")

    def _walk_annotated(self, hint: Any) -> ShapeNode:
        base = hint.__origin__
        metadata = hint.__metadata__
        for marker in metadata:
            if isinstance(marker, Primitive):
                return LeafShape(marker.kind, marker.width)
        for marker in metadata:
            if isinstance(marker, FixedLen):
                inner = self.walk(base)
                if not isinstance(inner, SequenceShape):
                    raise UnsupportedShape.for_type(
                        identity_of(hint), "FixedLen aplicado a um tipo que não é sequência"
                    )
                return SequenceShape(inner.element, marker.length)
        return self.walk(base)

    # ------------------------------------------------------------------
    # Resolução de hints
    # ------------------------------------------------------------------

    def _resolve(self, hint: Any) -> Any:
        return _substitute(hint, self._env[-1])

    @staticmethod
    def _named_class(hint: Any) -> Optional[type]:
        origin = typing.get_origin(hint)
        if origin is None:
            cls = hint if isinstance(hint, type) else None
        else:
            cls = origin if isinstance(origin, type) else None
        if cls is None:
            return None
        if cls in _STRUCTURAL_CLASSES and not hasattr(cls, "abi_shape"):
            return None
        return cls


def _is_bound(hint: Any, env: Dict[Any, Any]) -> bool:
    if isinstance(hint, typing.TypeVar):
        return hint in env
    return all(p in env for p in getattr(hint, "__parameters__", ()))


def _substitute(hint: Any, env: Dict[Any, Any]) -> Any:
    """Substitui TypeVars de `hint` pelas ligações de `env`."""
    if isinstance(hint, typing.TypeVar):
        if hint in env:
            return env[hint]
        raise UnsupportedShape.for_type(identity_of(hint), "parâmetro genérico sem instanciação")

    if not getattr(hint, "__parameters__", ()):
        return hint

    origin = typing.get_origin(hint)
    if origin is None:
        # Classe genérica sem argumentos; seus campos falham como TypeVar livre.
        return hint

    if origin is typing.Annotated:
        base = _substitute(hint.__origin__, env)
        return typing.Annotated[(base, *hint.__metadata__)]

    args = tuple(_substitute(a, env) for a in typing.get_args(hint))
    if origin is typing.Union or origin is types.UnionType:
        return typing.Union[args]
    return origin[args]
