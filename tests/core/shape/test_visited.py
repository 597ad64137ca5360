# tests/core/shape/test_visited.py
"""
Testes do registro de tipos visitados.

Garantem que:
- `enter` retorna False para tipos já em andamento (ciclo)
- `leave` exige ordem LIFO; violação é bug do motor
- o registro termina vazio após entradas e saídas balanceadas
"""

import pytest

from abi_digest.core.exceptions import RegistryInvariantError
from abi_digest.core.shape.visited import VisitedTypes


def test_enter_detects_cycle(ident):
    visited = VisitedTypes()
    a = ident("a.A")
    assert visited.enter(a) is True
    assert visited.enter(a) is False
    assert a in visited
    assert len(visited) == 1


def test_balanced_enter_leave_empties_registry(ident):
    visited = VisitedTypes()
    a, b = ident("a.A"), ident("a.B")
    visited.enter(a)
    visited.enter(b)
    assert visited.depth_of(a) == 0
    assert visited.depth_of(b) == 1
    visited.leave(b)
    visited.leave(a)
    assert len(visited) == 0
    assert visited.depth_of(a) is None


def test_out_of_order_leave_is_invariant_violation(ident):
    visited = VisitedTypes()
    a, b = ident("a.A"), ident("a.B")
    visited.enter(a)
    visited.enter(b)
    with pytest.raises(RegistryInvariantError) as excinfo:
        visited.leave(a)
    assert excinfo.value.details == {"leaving": "a.A", "top": "a.B"}


def test_leave_without_enter_is_invariant_violation(ident):
    with pytest.raises(RegistryInvariantError):
        VisitedTypes().leave(ident("a.A"))
