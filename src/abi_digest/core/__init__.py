# src/abi_digest/core/__init__.py
"""
Core do abi-digest: walker de shapes, acumulador, cache concorrente,
snapshot e motor de verificação.

Componentes principais:
    - shape        → identidades, primitivas, nós de shape, walker, visitados
    - digest       → acumulador (fold), cache single-flight, compute_digest
    - catalog      → pontos de entrada (TypeCatalog, frozen_abi)
    - snapshot     → leitura (mmap) e escrita atômica do arquivo de snapshot
    - verify       → comparação vivo × snapshot
    - config       → carregamento, merge, hashing e validação de configuração
    - engine       → máquina de estados da run (verificação e freeze)
    - traceability → manifest JSON da run
"""
