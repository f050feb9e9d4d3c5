"""Accumulates discovered keys and reconciles declaration vs. code spellings."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Set

from ..models import DEFAULT_MAX_CONTEXT, KeyContext, ScanResult


class KeyRegistry:
    """Collects keys and bounded context for a single scan.

    Keys are tracked per case-insensitive identity. Spellings seen through code
    access idioms and spellings seen in declaration files are kept apart until
    `build` applies the reconciliation rule: an identity survives only when code
    reads it, and a declaration-only identity is dropped.
    """

    def __init__(self, max_context: int = DEFAULT_MAX_CONTEXT) -> None:
        self.max_context = max(0, max_context)
        self._code_spellings: "OrderedDict[str, List[str]]" = OrderedDict()
        self._declared: Dict[str, List[str]] = {}
        self._contexts: Dict[str, List[KeyContext]] = {}
        self._declared_contexts: Dict[str, List[KeyContext]] = {}

    @staticmethod
    def identity(key: str) -> str:
        return key.upper()

    def record_code(self, key: str, context: KeyContext | None = None) -> None:
        ident = self.identity(key)
        spellings = self._code_spellings.setdefault(ident, [])
        if key not in spellings:
            spellings.append(key)
        self._add_context(self._contexts, ident, context)

    def record_declaration(self, key: str, context: KeyContext | None = None) -> None:
        ident = self.identity(key)
        spellings = self._declared.setdefault(ident, [])
        if key not in spellings:
            spellings.append(key)
        self._add_context(self._declared_contexts, ident, context)

    @property
    def code_keys(self) -> Set[str]:
        return {key for spellings in self._code_spellings.values() for key in spellings}

    @property
    def declared_keys(self) -> Set[str]:
        return {key for spellings in self._declared.values() for key in spellings}

    def build(self, files_scanned: int) -> ScanResult:
        keys: List[str] = []
        contexts: Dict[str, List[KeyContext]] = {}
        for ident, spellings in self._code_spellings.items():
            display = _display_form(spellings + self._declared.get(ident, []))
            keys.append(display)
            # Code reads outrank declarations for the shared cap.
            captured = self._contexts.get(ident, []) + self._declared_contexts.get(ident, [])
            captured = captured[: self.max_context]
            if captured:
                contexts[display] = list(captured)
        return ScanResult.build(keys, files_scanned, contexts)

    def _add_context(
        self, store: Dict[str, List[KeyContext]], ident: str, context: KeyContext | None
    ) -> None:
        if context is None:
            return
        bucket = store.setdefault(ident, [])
        # First-seen entries win; later captures are dropped once full.
        if len(bucket) < self.max_context:
            bucket.append(context)


def _display_form(spellings: List[str]) -> str:
    for spelling in spellings:
        if spelling == spelling.upper():
            return spelling
    return spellings[0]


__all__ = ["KeyRegistry"]
