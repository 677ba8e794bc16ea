import shutil
import subprocess
from pathlib import Path

from ..domain.errors import StoreError


class GitRunner:
    """thin wrapper around the git executable."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def available(self) -> bool:
        """check if git can be found on PATH."""
        return shutil.which(self.executable) is not None

    def ensure_available(self):
        if not self.available():
            raise StoreError("git is not installed or not found in PATH")

    def clone(self, url: str, dest: Path):
        """clone `url` into `dest`, letting git's own output reach the terminal."""
        try:
            result = subprocess.run([self.executable, "clone", url, str(dest)])
        except OSError as e:
            raise StoreError(f"Failed to spawn git clone: {e}") from e
        if result.returncode != 0:
            raise StoreError(f"git clone failed with status: {result.returncode}")

    def pull(self, repo_path: Path) -> bool:
        """fast-forward pull in `repo_path`. returns False if git reports failure."""
        try:
            result = subprocess.run([self.executable, "-C", str(repo_path), "pull", "--ff-only"])
        except OSError as e:
            raise StoreError(f"Running git pull in {repo_path} failed: {e}") from e
        return result.returncode == 0
