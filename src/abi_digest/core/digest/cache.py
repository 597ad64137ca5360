# src/abi_digest/core/digest/cache.py
"""
Cache concorrente de digests (single-flight + log append-only).

O DigestCache é o único recurso mutável compartilhado do motor. Ele guarda
o mapeamento TypeIdentity → Digest durante toda a vida do processo e
registra cada primeira publicação em um log append-only com número de
sequência monotônico.

Decisões arquiteturais:
    - Um único lock curto protege o dicionário de entradas, os voos em
      andamento e o log; nenhuma computação ocorre sob o lock
    - `get_or_compute` é single-flight: para uma mesma identidade, apenas
      um chamador executa walk+fold; os demais esperam o resultado
    - Identidades distintas computam em paralelo, sem serialização global
    - Lookups aninhados (feitos pelo walker) nunca esperam por voos de
      outras threads: isso impede deadlock entre ciclos cruzados
    - Falhas não são cacheadas: o voo é liberado e o erro é repassado a
      todos os chamadores que aguardavam

Política de reuso:
    Cada entrada carrega a flag `reusable`. Apenas digests independentes de
    contexto (tipo fora de qualquer ciclo com outros tipos nomeados) são
    devolvidos para uso como filho (`lookup(..., reusable_only=True)`).
    Digests de tipos cíclicos ficam armazenados para a identidade de topo.

Invariantes:
    - Uma identidade possui no máximo um digest durante a vida do cache
    - Números de sequência são atribuídos em ordem de publicação, sem lacunas
    - A ordem do log pode variar entre runs; o mapeamento, nunca
    - Dois workers podem percorrer o mesmo tipo aninhado ao mesmo tempo
      (lookup sem espera); ambos chegam ao mesmo digest e só a primeira
      publicação entra no log
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from abi_digest.core.exceptions import RegistryInvariantError
from abi_digest.core.shape.identity import TypeIdentity
from abi_digest.core.types import Digest, DigestRecord


ComputeFn = Callable[[], Tuple[Digest, bool]]


@dataclass
class _Entry:
    record: DigestRecord
    reusable: bool


class _Flight:
    """Computação em andamento para uma identidade."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.digest: Optional[Digest] = None
        self.error: Optional[BaseException] = None


class DigestCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[TypeIdentity, _Entry] = {}
        self._flights: Dict[TypeIdentity, _Flight] = {}
        self._log: List[DigestRecord] = []
        self._computations = 0

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    def lookup(self, identity: TypeIdentity, *, reusable_only: bool = True) -> Optional[Digest]:
        """
        Retorna o digest conhecido para `identity`, sem bloquear.

        Com `reusable_only=True` (uso do walker para filhos aninhados),
        entradas dependentes de contexto são ignoradas.
        """
        with self._lock:
            entry = self._entries.get(identity)
        if entry is None:
            return None
        if reusable_only and not entry.reusable:
            return None
        return entry.record.digest

    def record_for(self, identity: TypeIdentity) -> Optional[DigestRecord]:
        with self._lock:
            entry = self._entries.get(identity)
        return entry.record if entry is not None else None

    def records(self) -> Tuple[DigestRecord, ...]:
        """Cópia do log append-only, em ordem de sequência."""
        with self._lock:
            return tuple(self._log)

    @property
    def computations(self) -> int:
        """Quantas vezes `get_or_compute` executou de fato uma computação."""
        with self._lock:
            return self._computations

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries

    # ------------------------------------------------------------------
    # Escrita
    # ------------------------------------------------------------------

    def publish(self, identity: TypeIdentity, digest: Digest, *, reusable: bool) -> DigestRecord:
        """
        Insere o digest de `identity` se ausente e retorna o registro vigente.

        Raises:
            RegistryInvariantError: Se já existe um digest diferente para a
                mesma identidade (computação não determinística).
        """
        with self._lock:
            entry = self._entries.get(identity)
            if entry is not None:
                if entry.record.digest != digest:
                    raise RegistryInvariantError(
                        message=f"Digest divergente publicado para {identity}",
                        details={
                            "type_identity": identity.canonical,
                            "cached": entry.record.digest.hex(),
                            "published": digest.hex(),
                        },
                    )
                if reusable and not entry.reusable:
                    entry.reusable = True
                return entry.record

            record = DigestRecord(identity=identity, digest=digest, sequence=len(self._log))
            self._entries[identity] = _Entry(record=record, reusable=reusable)
            self._log.append(record)
            return record

    def get_or_compute(self, identity: TypeIdentity, compute: ComputeFn) -> Digest:
        """
        Retorna o digest de `identity`, computando-o no máximo uma vez.

        Args:
            identity: Identidade de topo.
            compute: Função sem argumentos que retorna (digest, reusable).

        Raises:
            Qualquer exceção de `compute`, repassada também aos chamadores
            que aguardavam o mesmo voo.
        """
        with self._lock:
            entry = self._entries.get(identity)
            if entry is not None:
                return entry.record.digest
            flight = self._flights.get(identity)
            owner = flight is None
            if owner:
                flight = _Flight()
                self._flights[identity] = flight
                self._computations += 1

        if not owner:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.digest

        try:
            digest, reusable = compute()
            self.publish(identity, digest, reusable=reusable)
            flight.digest = digest
            return digest
        except BaseException as exc:
            flight.error = exc
            raise
        finally:
            with self._lock:
                self._flights.pop(identity, None)
            flight.done.set()

    def clear(self) -> None:
        """Descarta entradas e log. Voos em andamento não são afetados."""
        with self._lock:
            self._entries.clear()
            self._log.clear()
            self._computations = 0


# ---------------------------------------------------------------------------
# Cache padrão do processo
# ---------------------------------------------------------------------------

_default_cache: Optional[DigestCache] = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> DigestCache:
    """Cache de processo, criado preguiçosamente no primeiro uso."""
    global _default_cache
    if _default_cache is None:
        with _default_cache_lock:
            if _default_cache is None:
                _default_cache = DigestCache()
    return _default_cache


def reset_default_cache() -> None:
    """Descarta o cache de processo (uso em testes)."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = None
