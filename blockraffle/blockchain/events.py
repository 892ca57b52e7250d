from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BlockEvent:
    """A newly connected block as reported by the node.

    ``hash`` is kept exactly as delivered, which for LND is the reverse of the
    canonical (explorer) byte order.
    """

    height: int
    hash: bytes

    def canonical_hash(self) -> bytes:
        """Return the hash in canonical byte order."""
        return bytes(reversed(self.hash))
