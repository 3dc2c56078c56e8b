"""Soft diagnostics raised while loading and exporting ``.md5mesh`` files.

Each diagnostic has a stable W-code. By default it is reported through
``warnings.warn`` as a :class:`Md5MeshWarning`; a :class:`WarningPolicy` can
drop it or turn it into a :class:`~md5mesh.errors.ValidationError`.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from md5mesh.errors import ValidationError

CODE_DESCRIPTIONS: dict[str, str] = {
    "W01": "declared element index differs from its position in the list",
    "W02": "MD5Version is not 10",
    "W03": "joint name used more than once",
    "W04": "vertex has more than four joint influences",
}

KNOWN_CODES: frozenset[str] = frozenset(CODE_DESCRIPTIONS)


class Md5MeshWarning(UserWarning):
    """A W-coded diagnostic. ``code`` is one of :data:`KNOWN_CODES`."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Per-code handling, built from the CLI's ``--suppress``/``--warn-as-error``."""

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()


def emit_warning(
    code: str,
    message: str,
    *,
    policy: WarningPolicy | None = None,
    entity: str | None = None,
    index: int | None = None,
    mesh_index: int | None = None,
) -> None:
    """Report diagnostic ``code`` under ``policy``.

    ``entity``, ``index`` and ``mesh_index`` locate the offending joint, vert,
    tri or weight. They only surface when the code is escalated, in which case
    the raised ``ValidationError`` uses the code as its invariant. Suppressed
    codes return without reporting anything.
    """
    if policy is not None:
        if code in policy.suppress:
            return
        if code in policy.warn_as_error:
            raise ValidationError(
                f"[{code}] {message}",
                entity=entity,
                index=index,
                invariant=code,
                mesh_index=mesh_index,
            )

    warnings.warn(Md5MeshWarning(code, message), stacklevel=2)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse a comma-separated option value such as ``"W01, W04"``.

    Raises ``ValueError`` naming the accepted codes and their meaning when a
    token is not one of :data:`KNOWN_CODES`.
    """
    codes: set[str] = set()
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        if token not in CODE_DESCRIPTIONS:
            known = "; ".join(f"{c}: {d}" for c, d in sorted(CODE_DESCRIPTIONS.items()))
            raise ValueError(f"Unknown warning code: {token!r} (known: {known})")
        codes.add(token)
    return frozenset(codes)
