"""Event catalog: fingerprints of the Azimuth contract events.

Signatures are declared in readable Solidity form (names and `indexed`
markers); the canonical type-only signature is derived from them and hashed
with Keccak-256 to obtain topic0.

The catalog is an immutable value built once at startup with `build_catalog()`
and passed explicitly to whoever needs it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from eth_utils import keccak

# Layout of indexed topics follows the captured logs: topic1 is always the
# subject point, topic2 the second indexed argument.
AZIMUTH_EVENT_SIGNATURES: tuple[str, ...] = (
    "Spawned(uint32 indexed prefix, uint32 indexed child)",
    "Activated(uint32 indexed point)",
    "OwnerChanged(uint32 indexed point, address indexed owner)",
    "ChangedSpawnProxy(uint32 indexed point, address indexed spawnProxy)",
    "ChangedTransferProxy(uint32 indexed point, address indexed transferProxy)",
    "ChangedManagementProxy(uint32 indexed point, address indexed managementProxy)",
    "ChangedVotingProxy(uint32 indexed point, address indexed votingProxy)",
    "EscapeRequested(uint32 indexed point, uint32 indexed sponsor)",
    "EscapeCanceled(uint32 indexed point, uint32 indexed sponsor)",
    "EscapeAccepted(uint32 indexed point, uint32 indexed sponsor)",
    "LostSponsor(uint32 indexed point, uint32 indexed sponsor)",
    "BrokeContinuity(uint32 indexed point, uint32 indexed number)",
    "ChangedKeys(uint32 indexed point, bytes32 encryptionKey, bytes32 authenticationKey, uint32 cryptoSuiteVersion, uint32 keyRevisionNumber)",
    "ChangedDns(string primary, string secondary, string tertiary)",
)


# ---- Signature parsing ----


def _split_params(params_str: str) -> list[str]:
    """Split a parameter list on top-level commas (tuple types stay intact)."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in params_str:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            items.append("".join(buf).strip())
            buf = []
            continue
        buf.append(ch)
    if buf:
        items.append("".join(buf).strip())
    return [i for i in items if i]


def _param_type(param: str) -> tuple[str, bool]:
    """Return (abi_type, indexed) for one parameter fragment."""
    tokens = param.split()
    indexed = "indexed" in tokens
    tokens = [t for t in tokens if t != "indexed"]
    if not tokens:
        raise ValueError(f"Empty parameter in signature: {param!r}")
    # "uint32 point" -> type is everything but the trailing name
    abi_type = tokens[0] if len(tokens) == 1 else " ".join(tokens[:-1])
    return abi_type, indexed


def parse_signature(signature: str) -> tuple[str, list[str], list[bool]]:
    """Split a Solidity event signature into (name, abi_types, indexed_flags)."""
    sig = signature.strip()
    open_paren = sig.find("(")
    close_paren = sig.rfind(")")
    if open_paren <= 0 or close_paren < open_paren:
        raise ValueError(f"Invalid event signature: {signature}")
    name = sig[:open_paren].strip()
    types: list[str] = []
    indexed: list[bool] = []
    for part in _split_params(sig[open_paren + 1 : close_paren]):
        abi_type, is_indexed = _param_type(part)
        types.append(abi_type)
        indexed.append(is_indexed)
    return name, types, indexed


def canonical_signature(signature: str) -> str:
    """`"Activated(uint32 indexed point)"` -> `"Activated(uint32)"`."""
    name, types, _ = parse_signature(signature)
    return f"{name}({','.join(types)})"


def fingerprint(signature: str) -> str:
    """Keccak-256 topic0 of a signature, as lowercase 0x-hex."""
    return "0x" + keccak(text=canonical_signature(signature)).hex()


# ---- Catalog ----


@dataclass(frozen=True)
class CatalogEntry:
    """One cataloged event."""

    name: str
    signature: str  # canonical, e.g. "OwnerChanged(uint32,address)"
    topic0: str
    indexed_count: int


class EventCatalog(Mapping[str, CatalogEntry]):
    """Read-only mapping topic0 -> CatalogEntry, with lookups by name."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        by_topic: dict[str, CatalogEntry] = {}
        by_name: dict[str, CatalogEntry] = {}
        for e in entries:
            if e.topic0 in by_topic:
                raise ValueError(f"Duplicate fingerprint for {e.name}: {e.topic0}")
            if e.name in by_name:
                raise ValueError(f"Duplicate event name: {e.name}")
            by_topic[e.topic0] = e
            by_name[e.name] = e
        self._by_topic = MappingProxyType(by_topic)
        self._by_name = MappingProxyType(by_name)

    def __getitem__(self, topic0: str) -> CatalogEntry:
        return self._by_topic[topic0.lower()]

    def __contains__(self, topic0: object) -> bool:
        return isinstance(topic0, str) and topic0.lower() in self._by_topic

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_topic)

    def __len__(self) -> int:
        return len(self._by_topic)

    def name_of(self, topic0: str) -> str | None:
        """Event name for a fingerprint, or None if unknown."""
        e = self._by_topic.get(topic0.lower())
        return e.name if e else None

    def topic0(self, name: str) -> str:
        """Fingerprint for an event name. KeyError if the name is not cataloged."""
        return self._by_name[name].topic0

    @property
    def names(self) -> list[str]:
        return list(self._by_name)


def catalog_entry(signature: str) -> CatalogEntry:
    name, types, indexed = parse_signature(signature)
    return CatalogEntry(
        name=name,
        signature=f"{name}({','.join(types)})",
        topic0=fingerprint(signature),
        indexed_count=sum(indexed),
    )


def build_catalog(signatures: Iterable[str] = AZIMUTH_EVENT_SIGNATURES) -> EventCatalog:
    """Hash every signature once and return the catalog."""
    return EventCatalog(catalog_entry(s) for s in signatures)
