import logging
import shutil
from pathlib import Path
from typing import List, NamedTuple, Optional

from .git import GitRunner
from ..domain.errors import StoreError

logger = logging.getLogger(__name__)


def derive_repo_name(repo_url: str) -> str:
    """name a repo is stored under: last url segment without trailing / or .git."""
    trimmed = repo_url.rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[:-4]
    return trimmed.rsplit("/", 1)[-1]


class ActiveLink(NamedTuple):
    name: str
    target: Path


class UpdateSummary(NamedTuple):
    updated: int
    skipped: int
    failed: List[Path]


class LocalStore:
    """the shared directory holding cloned dotfile repos."""

    def __init__(self, store_dir: Path, config_dir: Path, git: Optional[GitRunner] = None):
        self.store_dir = Path(store_dir)
        self.config_dir = Path(config_dir)
        self.git = git or GitRunner()

    def path_for(self, name: str) -> Path:
        return self.store_dir / name

    def exists(self, name: str) -> bool:
        return bool(name) and self.path_for(name).exists()

    def ensure_store_dir(self):
        if self.store_dir.exists():
            return
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed creating {self.store_dir} (need sudo?)") from e

    def list_repos(self) -> List[str]:
        """sorted names of the repos in the store."""
        self.ensure_store_dir()
        return sorted(p.name for p in self.store_dir.iterdir() if p.is_dir())

    def install(self, repo_url: str) -> Optional[Path]:
        """
        clone a repository into the store.

        returns:
            path of the new clone, or None if a repo with that name already exists

        raises:
            StoreError: if the name can't be derived, git is missing or the clone fails
        """
        self.ensure_store_dir()

        name = derive_repo_name(repo_url)
        if not name:
            raise StoreError(f"Could not infer repository name from URL: {repo_url}")

        dest = self.path_for(name)
        if dest.exists():
            logger.info(f"repo already exists: {dest}")
            return None

        self.git.ensure_available()
        self.git.clone(repo_url, dest)
        return dest

    def update(self) -> UpdateSummary:
        """fast-forward every git repo in the store."""
        self.ensure_store_dir()
        self.git.ensure_available()

        updated = 0
        skipped = 0
        failed = []
        for path in sorted(self.store_dir.iterdir()):
            if not path.is_dir():
                continue
            if not (path / ".git").exists():
                skipped += 1
                continue

            logger.info(f"updating {path}")
            if self.git.pull(path):
                updated += 1
            else:
                failed.append(path)
        return UpdateSummary(updated, skipped, failed)

    def link(self, name: str, target_name: str) -> Path:
        """
        replace <config_dir>/<target_name> with a symlink to a stored repo.

        returns:
            path of the created symlink
        """
        source = self.path_for(name)
        if not source.exists():
            raise StoreError(f"Source repo not found: {source}")

        target = self.config_dir / target_name
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Failed creating {self.config_dir}") from e

        if target.exists() or target.is_symlink():
            self._remove_path(target)

        try:
            target.symlink_to(source, target_is_directory=source.is_dir())
        except OSError as e:
            raise StoreError(f"Failed creating symlink {target} -> {source}: {e}") from e
        return target

    def active(self) -> List[ActiveLink]:
        """symlinks in the config dir that point into the store."""
        if not self.config_dir.exists():
            return []

        store_root = self.store_dir.resolve()
        found = []
        for path in sorted(self.config_dir.iterdir()):
            if not path.is_symlink():
                continue
            resolved = path.resolve()
            if resolved == store_root or store_root in resolved.parents:
                found.append(ActiveLink(path.name, resolved))
        return found

    def _remove_path(self, path: Path):
        try:
            if path.is_symlink() or path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StoreError(f"Failed removing existing {path}: {e}") from e
