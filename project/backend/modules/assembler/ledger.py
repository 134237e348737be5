"""
Resource ledger for assembler module.

Per-run registry of temporary artifacts. Every registered path is visited
exactly once for deletion when the run ends, whatever the outcome.
"""
from pathlib import Path
from typing import Dict, List, NamedTuple

from shared.logging import get_logger
from .config import TEMP_FILE_PREFIX

logger = get_logger("assembler.ledger")


class CleanupFailure(NamedTuple):
    role: str
    path: Path
    error: str


class ResourceLedger:
    """Append-only role -> path registry owned by one run."""

    def __init__(self, run_id: str, temp_dir: Path):
        self.run_id = run_id
        self.temp_dir = temp_dir
        self._entries: Dict[str, Path] = {}
        self._released = False

    def allocate(self, role: str, name: str) -> Path:
        """Register and return a run-namespaced path: <temp_dir>/mux-<run_id>-<name>."""
        return self.register(role, self.temp_dir / f"{TEMP_FILE_PREFIX}-{self.run_id}-{name}")

    def register(self, role: str, path: Path) -> Path:
        """
        Record a temporary artifact before it is created.

        Raises:
            ValueError: If the role is already registered
            RuntimeError: If the ledger has already been released
        """
        if self._released:
            raise RuntimeError(f"Ledger for run {self.run_id} already released")
        if role in self._entries:
            raise ValueError(f"Role already registered: {role}")
        self._entries[role] = path
        logger.debug(
            f"Registered {role}: {path}",
            extra={"run_id": self.run_id, "role": role, "path": str(path)}
        )
        return path

    def release_all(self) -> List[CleanupFailure]:
        """
        Delete every registered path once.

        Never raises. Files that were never created count as released.
        A second call is a no-op.

        Returns:
            Deletions that failed (already logged)
        """
        if self._released:
            return []
        self._released = True

        failures: List[CleanupFailure] = []
        for role, path in self._entries.items():
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                failures.append(CleanupFailure(role, path, str(e)))
                logger.warning(
                    f"Failed to delete {role} at {path}: {e}",
                    extra={"run_id": self.run_id, "role": role, "path": str(path)}
                )

        logger.info(
            f"Released {len(self._entries) - len(failures)}/{len(self._entries)} temp files",
            extra={"run_id": self.run_id, "cleanup_failures": len(failures)}
        )
        return failures
