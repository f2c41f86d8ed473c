"""
Secret Bundle Model

Decrypted vault values live only in memory, inside this object.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Optional


@dataclass(frozen=True)
class SecretBundle:
    """Encrypted vault file, its password file and the decrypted mapping."""

    vault_path: Path
    password_path: Path
    values: Dict[str, Any] = field(default_factory=dict, repr=False)

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """Get a decrypted value."""
        return self.values.get(key, default)

    def has(self, key: str) -> bool:
        """Check if a key exists."""
        return key in self.values

    def keys(self) -> Iterator[str]:
        return iter(sorted(self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"SecretBundle(vault={self.vault_path.name}, keys={len(self.values)})"
