from __future__ import annotations

from .vault_checks import vault_checks

__all__ = ["vault_checks"]
