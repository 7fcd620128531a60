"""
Persistence Module

Checksummed JSON save files for brains and populations.

Every file is an envelope:
    {
        "format_version": 1,
        "saved_at": "...",
        "kind": "brain" | "population",
        "checksum": sha256 of the canonical JSON payload,
        "payload": {...}
    }

Paths ending in .gz are gzip-compressed. Existing files can be rotated
into numbered backups before being overwritten.
"""

import gzip
import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from loguru import logger

from .config import CreatureConfig
from .creature import Creature
from .exceptions import EvoSymError, PersistenceError
from .network import NeuralNetwork


FORMAT_VERSION = 1

KIND_BRAIN = "brain"
KIND_POPULATION = "population"

PathLike = Union[str, Path]


# =============================================================================
# ENVELOPE
# =============================================================================

def _json_default(value: Any):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"Not JSON serializable: {type(value).__name__}")


def _canonical(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(',', ':'), default=_json_default)


def compute_checksum(payload: Dict[str, Any]) -> str:
    return hashlib.sha256(_canonical(payload).encode('utf-8')).hexdigest()


def _is_gzip(path: Path) -> bool:
    return path.suffix == '.gz'


def _rotate_backups(path: Path, max_backups: int):
    """Shift path -> .backup1 -> .backup2 ..., dropping the oldest."""
    oldest = path.with_name(f"{path.name}.backup{max_backups}")
    if oldest.exists():
        oldest.unlink()
    for i in range(max_backups - 1, 0, -1):
        old_backup = path.with_name(f"{path.name}.backup{i}")
        if old_backup.exists():
            old_backup.rename(path.with_name(f"{path.name}.backup{i + 1}"))
    path.rename(path.with_name(f"{path.name}.backup1"))


def write_envelope(kind: str, payload: Dict[str, Any], path: PathLike,
                   create_backup: bool = False, max_backups: int = 3) -> str:
    """
    Wrap a payload in a checksummed envelope and write it.

    Args:
        kind: Payload kind ("brain" or "population")
        payload: JSON-serializable payload
        path: Destination; a .gz suffix enables gzip
        create_backup: Rotate an existing file into numbered backups first
        max_backups: Number of backups to keep

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if create_backup and max_backups > 0 and path.exists():
        _rotate_backups(path, max_backups)

    envelope = {
        'format_version': FORMAT_VERSION,
        'saved_at': datetime.now(timezone.utc).isoformat(),
        'kind': kind,
        'checksum': compute_checksum(payload),
        'payload': payload,
    }
    text = json.dumps(envelope, default=_json_default)

    try:
        if _is_gzip(path):
            with gzip.open(path, 'wt', encoding='utf-8') as f:
                f.write(text)
        else:
            path.write_text(text, encoding='utf-8')
    except OSError as e:
        raise PersistenceError(f"Could not write {path}: {e}") from e

    logger.debug(f"[Persistence] Saved {kind} to {path}")
    return str(path)


def read_envelope(path: PathLike, expected_kind: Optional[str] = None) -> Dict[str, Any]:
    """
    Read and verify an envelope.

    Raises:
        PersistenceError: Unreadable file, unsupported version, wrong kind
            or checksum mismatch
    """
    path = Path(path)
    if not path.exists():
        raise PersistenceError(f"Save file not found: {path}")

    try:
        if _is_gzip(path):
            with gzip.open(path, 'rt', encoding='utf-8') as f:
                envelope = json.load(f)
        else:
            envelope = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Could not read {path}: {e}") from e

    if not isinstance(envelope, dict) or 'payload' not in envelope:
        raise PersistenceError(f"{path} is not an evosym save file")

    version = envelope.get('format_version')
    if version != FORMAT_VERSION:
        raise PersistenceError(f"Unsupported format version {version!r} in {path}")

    if expected_kind is not None and envelope.get('kind') != expected_kind:
        raise PersistenceError(f"{path} holds a {envelope.get('kind')!r}, expected {expected_kind!r}")

    if compute_checksum(envelope['payload']) != envelope.get('checksum'):
        raise PersistenceError(f"Checksum mismatch in {path}")

    logger.debug(f"[Persistence] Loaded {envelope['kind']} from {path}")
    return envelope


# =============================================================================
# BRAINS
# =============================================================================

def save_brain(network: NeuralNetwork, path: PathLike, **kwargs) -> str:
    return write_envelope(KIND_BRAIN, network.to_dict(), path, **kwargs)


def load_brain(path: PathLike) -> NeuralNetwork:
    envelope = read_envelope(path, KIND_BRAIN)
    try:
        return NeuralNetwork.from_dict(envelope['payload'])
    except EvoSymError as e:
        raise PersistenceError(f"Invalid brain in {path}: {e}") from e


# =============================================================================
# POPULATIONS
# =============================================================================

def save_population(creatures: Sequence[Creature], path: PathLike,
                    metadata: Optional[Dict[str, Any]] = None, **kwargs) -> str:
    """
    Save creatures with their full state (genetics, physics, stats, brain).

    Args:
        creatures: Creatures to save
        path: Destination file
        metadata: Free-form JSON metadata stored alongside
    """
    payload = {
        'metadata': dict(metadata or {}),
        'creatures': [c.to_dict() for c in creatures],
    }
    saved = write_envelope(KIND_POPULATION, payload, path, **kwargs)
    logger.info(f"[Persistence] Saved {len(creatures)} creatures to {saved}")
    return saved


def load_population(path: PathLike, rng: Optional[np.random.Generator] = None,
                    config: Optional[CreatureConfig] = None) -> List[Creature]:
    envelope = read_envelope(path, KIND_POPULATION)
    try:
        creatures = [Creature.from_dict(d, rng=rng, config=config)
                     for d in envelope['payload']['creatures']]
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceError(f"Invalid population in {path}: {e}") from e

    logger.info(f"[Persistence] Loaded {len(creatures)} creatures from {path}")
    return creatures


def load_population_metadata(path: PathLike) -> Dict[str, Any]:
    return dict(read_envelope(path, KIND_POPULATION)['payload'].get('metadata', {}))
