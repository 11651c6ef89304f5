"""Plugin source acquisition: local paths and GitHub URLs (shallow git clone)."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .errors import AcquisitionError
from .models import LocalSource, PluginSource, RemoteSource

logger = logging.getLogger(__name__)

GITHUB_PREFIX = "https://github.com/"
CLONE_TIMEOUT = 120


@dataclass(frozen=True)
class GitHubSource:
    owner: str
    repo: str
    ref: str | None = None
    subpath: str | None = None

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


def is_github_url(source: str) -> bool:
    return source.startswith(GITHUB_PREFIX)


def parse_github_url(url: str) -> GitHubSource | None:
    """Parse ``https://github.com/owner/repo[/tree|blob/<ref>[/<subpath>]]``.

    Returns None for anything that is not a GitHub repository URL.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("https", "http") or parsed.hostname != "github.com":
        return None

    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) < 2:
        return None

    owner, repo, rest = segments[0], segments[1], segments[2:]
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not rest:
        return GitHubSource(owner=owner, repo=repo)

    if rest[0] not in ("tree", "blob") or len(rest) < 2:
        return None
    subpath = "/".join(rest[2:]) or None
    return GitHubSource(owner=owner, repo=repo, ref=rest[1], subpath=subpath)


def build_github_url(source: GitHubSource) -> str:
    url = f"https://github.com/{source.owner}/{source.repo}"
    if source.ref:
        url += f"/tree/{source.ref}"
        if source.subpath:
            url += f"/{source.subpath}"
    return url


@dataclass
class AcquiredSource:
    """A plugin source materialised on the local filesystem."""

    local_root: Path
    source: PluginSource
    locator: str
    temp_dir: Path | None = None

    @property
    def is_remote(self) -> bool:
        return isinstance(self.source, RemoteSource)

    def cleanup(self) -> None:
        """Remove any temporary clone. Failures are logged, never raised."""
        if self.temp_dir is None:
            return
        try:
            shutil.rmtree(self.temp_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up temp directory {self.temp_dir}: {e}")
        self.temp_dir = None


def clone_to_temp(url: str, ref: str | None = None) -> Path:
    """Shallow-clone *url* into a fresh temp directory and return it."""
    temp_dir = Path(tempfile.gettempdir()) / f"opencode-plugin-{uuid.uuid4().hex}"
    cmd = ["git", "clone", "--depth", "1"]
    if ref:
        cmd.extend(["--branch", ref])
    cmd.extend([url, str(temp_dir)])

    logger.debug(f"Cloning {url} into {temp_dir}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=CLONE_TIMEOUT)
    except FileNotFoundError as e:
        raise AcquisitionError(f"Git command failed: {e}", hint="install git") from e
    except subprocess.TimeoutExpired as e:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise AcquisitionError(f"Timed out cloning {url} after {CLONE_TIMEOUT}s") from e

    if result.returncode != 0:
        shutil.rmtree(temp_dir, ignore_errors=True)
        message = (result.stderr or result.stdout or "Unknown error").strip()
        raise AcquisitionError(f"Failed to clone repository: {message}")
    return temp_dir


def _acquire_remote(locator: str) -> AcquiredSource:
    github = parse_github_url(locator)
    if github is None:
        raise AcquisitionError(f"Invalid GitHub URL: {locator}")

    temp_dir = clone_to_temp(github.clone_url, github.ref)
    root = temp_dir / github.subpath if github.subpath else temp_dir
    return AcquiredSource(
        local_root=root,
        source=RemoteSource(url=build_github_url(github), ref=github.ref),
        locator=locator,
        temp_dir=temp_dir,
    )


@contextmanager
def acquire_source(locator: str) -> Iterator[AcquiredSource]:
    """Yield a local root for *locator*; temporary clones are removed on exit."""
    if is_github_url(locator):
        acquired = _acquire_remote(locator)
    else:
        path = Path(locator).expanduser().resolve()
        acquired = AcquiredSource(local_root=path, source=LocalSource(str(path)), locator=locator)
    try:
        yield acquired
    finally:
        acquired.cleanup()
