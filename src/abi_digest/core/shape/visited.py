# src/abi_digest/core/shape/visited.py
"""
Registro de tipos visitados — quebra de ciclos do walker.

Cada cálculo de digest de topo possui seu próprio `VisitedTypes`, vivo
apenas durante aquela chamada. O walker chama `enter` antes de descer em
um tipo nomeado; se o tipo já está em andamento, há um ciclo e o walker
emite `ReferenceShape` em vez de recursar.

Decisões arquiteturais:
    - Nunca compartilhado entre threads ou chamadas: nenhum lock é necessário
    - `leave` só é chamado para tipos efetivamente entrados
    - Saídas fora de ordem são tratadas como bug do motor

Invariantes:
    - Os tipos ativos formam uma pilha (ordem LIFO de enter/leave)
    - Ao fim de um cálculo de topo o registro está vazio
"""

from __future__ import annotations

from typing import Dict, List, Optional

from abi_digest.core.exceptions import RegistryInvariantError

from .identity import TypeIdentity


class VisitedTypes:
    """Pilha de identidades em andamento durante um único cálculo de digest."""

    def __init__(self) -> None:
        self._stack: List[TypeIdentity] = []
        self._depth: Dict[TypeIdentity, int] = {}

    def enter(self, identity: TypeIdentity) -> bool:
        """Retorna True se o tipo foi entrado agora; False se já está em andamento."""
        if identity in self._depth:
            return False
        self._depth[identity] = len(self._stack)
        self._stack.append(identity)
        return True

    def leave(self, identity: TypeIdentity) -> None:
        if not self._stack or self._stack[-1] != identity:
            top = self._stack[-1].canonical if self._stack else None
            raise RegistryInvariantError(
                message=f"Saída fora de ordem do registro de visitados: {identity}",
                details={"leaving": identity.canonical, "top": top},
            )
        self._stack.pop()
        del self._depth[identity]

    def depth_of(self, identity: TypeIdentity) -> Optional[int]:
        return self._depth.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._depth

    def __len__(self) -> int:
        return len(self._stack)
