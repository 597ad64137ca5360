"""
src/abi_digest/report/report_md.py

Gerador de relatório Markdown (v1) de uma run de verificação.

Regras:
- O relatório é derivado EXCLUSIVAMENTE do VerificationResult.
- Não recalcula digests e não acessa filesystem.
- Mesmo resultado => mesmo relatório (ordem estável das listas).

Estrutura obrigatória:
# ABI Digest Report

## Summary
## Changed
## New
## Removed
## Errors
"""

from __future__ import annotations

import json
from typing import Any, List

from abi_digest.core.verify.diff import VerificationResult


REQUIRED_SECTIONS: List[str] = [
    "# ABI Digest Report",
    "## Summary",
    "## Changed",
    "## New",
    "## Removed",
    "## Errors",
]


def _as_pretty_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, indent=2)


def generate_report_md(result: VerificationResult) -> str:
    """Gera o conteúdo completo do relatório a partir do resultado da run."""
    if not isinstance(result, VerificationResult):
        raise TypeError("VerificationResult is required to generate the report")

    lines: List[str] = []

    lines.append("# ABI Digest Report\n")

    lines.append("## Summary")
    lines.append(f"- **Status**: `{result.status.value.upper()}`")
    for key, value in result.summary().items():
        if key == "status":
            continue
        lines.append(f"- **{key}**: `{value}`")
    lines.append("")

    lines.append("## Changed")
    if result.changed:
        lines.append("| Type | Frozen digest | Live digest |")
        lines.append("|---|---|---|")
        for change in result.changed:
            lines.append(f"| `{change.identity}` | `{change.old.hex()}` | `{change.new.hex()}` |")
        lines.append("")
        lines.append("Changed types break the frozen wire layout. Revert the change or freeze deliberately.")
    else:
        lines.append("No frozen type changed.")
    lines.append("")

    lines.append("## New")
    if result.new:
        for identity in result.new:
            lines.append(f"- `{identity}`")
        lines.append("")
        lines.append("New types are not covered by the snapshot until the next freeze.")
    else:
        lines.append("No new types.")
    lines.append("")

    lines.append("## Removed")
    if result.removed:
        for identity in result.removed:
            lines.append(f"- `{identity}`")
    else:
        lines.append("No removed types.")
    lines.append("")

    lines.append("## Errors")
    if result.errors:
        for error in result.errors:
            lines.append(f"### {error.type}")
            lines.append("```json")
            lines.append(_as_pretty_json(error.to_dict()))
            lines.append("```")
    else:
        lines.append("No errors.")

    return "\n".join(lines).rstrip() + "\n"
