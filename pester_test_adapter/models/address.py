"""Node addresses and their wire format.

Internally an address is one of three variants. Only at the process boundary
is it turned into the opaque string used as a node id:

- ``root`` for the whole tree
- ``<absolute path>`` for a whole file
- ``<absolute path>;<line>`` for a block or test defined at a line
"""

from dataclasses import dataclass

ROOT_ID = "root"
ADDRESS_DELIMITER = ";"


@dataclass(frozen=True, kw_only=True)
class RootAddress:
    """Address of the synthetic root suite."""


@dataclass(frozen=True, kw_only=True)
class FileAddress:
    """Address of a whole test file."""

    path: str


@dataclass(frozen=True, kw_only=True)
class LocatedAddress:
    """Address of a block or test; ``line`` is one-based."""

    path: str
    line: int


type NodeAddress = RootAddress | FileAddress | LocatedAddress


def format_address(address: NodeAddress) -> str:
    """Serialize an address to its node id."""
    match address:
        case RootAddress():
            return ROOT_ID
        case FileAddress(path=path):
            return path
        case LocatedAddress(path=path, line=line):
            return f"{path}{ADDRESS_DELIMITER}{line}"
    raise TypeError(f"Unsupported address: {address!r}")


def parse_address(node_id: str) -> NodeAddress:
    """Parse a node id back into an address.

    The id is split on the last delimiter. A suffix that is not an integer
    means the id is a plain file path, delimiter included.
    """
    if node_id == ROOT_ID:
        return RootAddress()

    path, delimiter, line = node_id.rpartition(ADDRESS_DELIMITER)
    if delimiter and path and line.isdigit():
        return LocatedAddress(path=path, line=int(line))

    return FileAddress(path=node_id)


def node_id(file: str, line: int) -> str:
    """Derive the id of a node defined at a zero-based ``line`` of ``file``."""
    return format_address(LocatedAddress(path=file, line=line + 1))
