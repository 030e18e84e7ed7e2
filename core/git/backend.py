"""Git backend abstraction.

Separates the pipeline (ordering, batching, notification) from the git
mechanics. Every method is synchronous and must not be called concurrently;
the dispatcher is the only caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, PushInfo, Repo

from core.git.errors import CommitError, OpenError, PullError, PushError, StageError

logger = logging.getLogger(__name__)

# git output that means "nothing happened", not "something failed"
PULL_ACCEPTED_ERRORS = ("already up to date", "already up-to-date")
PUSH_ACCEPTED_ERRORS = ("everything up-to-date", "nothing to push")


def _is_accepted(error: Exception, accepted: Sequence[str]) -> bool:
    text = str(error).lower()
    return any(token in text for token in accepted)


def _describe(error: GitCommandError) -> str:
    """Prefer git's own output over GitPython's multi-line command dump."""
    for label, raw in (("stderr:", error.stderr), ("stdout:", error.stdout)):
        text = (raw or "").strip()
        if text.startswith(label):
            text = text[len(label):].strip()
        text = text.strip("'\" \n")
        if text:
            return text
    return str(error)


class Backend(ABC):
    """Version-control capability the pipeline drives.

    Implementations:
    - GitBackend: a local git working copy synchronized with one remote
    - test doubles recording calls and injecting failures
    """

    @abstractmethod
    def open_or_clone(self) -> None:
        """Open the working copy, cloning it first when absent.

        Raises:
            OpenError: the repository can be neither opened nor cloned
        """
        ...

    @abstractmethod
    def pull(self) -> None:
        """Fetch and merge remote changes. "Already up to date" is success.

        Raises:
            PullError
        """
        ...

    @abstractmethod
    def stage(self, paths: Sequence[str]) -> None:
        """Stage additions, modifications and deletions under *paths*.

        On failure nothing stays staged.

        Raises:
            StageError: naming the first path that could not be staged
        """
        ...

    @abstractmethod
    def commit(self, message: str) -> None:
        """Commit everything staged. On failure the index is cleared.

        Raises:
            CommitError
        """
        ...

    @abstractmethod
    def push(self) -> None:
        """Push local commits. "Nothing to push" is success.

        Raises:
            PushError
        """
        ...


class GitBackend(Backend):
    """Backend over a git working copy, driven through GitPython."""

    def __init__(
        self,
        path: str | Path,
        url: str,
        remote: str = "origin",
        ssh_key: str | Path | None = None,
        author_name: str | None = None,
        author_email: str | None = None,
    ):
        self.path = Path(path).expanduser().resolve()
        self.url = url
        self.remote = remote
        self._env = self._build_env(ssh_key, author_name, author_email)
        self._repo: Repo | None = None

    @staticmethod
    def _build_env(
        ssh_key: str | Path | None,
        author_name: str | None,
        author_email: str | None,
    ) -> dict[str, str]:
        env: dict[str, str] = {}
        if ssh_key:
            key = Path(ssh_key).expanduser()
            env["GIT_SSH_COMMAND"] = f"ssh -i {key} -o IdentitiesOnly=yes"
        if author_name:
            env["GIT_AUTHOR_NAME"] = env["GIT_COMMITTER_NAME"] = author_name
        if author_email:
            env["GIT_AUTHOR_EMAIL"] = env["GIT_COMMITTER_EMAIL"] = author_email
        return env

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            raise OpenError(f"repository at {self.path} is not open")
        return self._repo

    def open_or_clone(self) -> None:
        try:
            self._repo = Repo(self.path)
            logger.info("opened working copy %s", self.path)
            return
        except (InvalidGitRepositoryError, NoSuchPathError):
            pass

        if self.path.exists() and any(self.path.iterdir()):
            raise OpenError(f"failed to open repository: {self.path} exists and is not a git working copy")

        logger.info("cloning %s into %s", self.url, self.path)
        try:
            self._repo = Repo.clone_from(
                self.url,
                str(self.path),
                origin=self.remote,
                env=self._env or None,
            )
        except GitCommandError as e:
            raise OpenError(f"failed to clone repository: {_describe(e)}") from e

    def pull(self) -> None:
        repo = self.repo
        try:
            with repo.git.custom_environment(**self._env):
                repo.git.pull("--ff-only", self.remote, repo.active_branch.name)
        except GitCommandError as e:
            if _is_accepted(e, PULL_ACCEPTED_ERRORS):
                return
            raise PullError(f"failed to pull working tree: {_describe(e)}") from e
        except TypeError as e:
            # detached HEAD: active_branch is undefined
            raise PullError(f"failed to pull working tree: {e}") from e

    def stage(self, paths: Sequence[str]) -> None:
        repo = self.repo
        for p in paths:
            try:
                # --all records deletions as well as additions
                repo.git.add("--all", "--", p)
            except GitCommandError as e:
                self._unstage()
                raise StageError(p, _describe(e)) from e
            logger.debug("added path %r", p)

    def commit(self, message: str) -> None:
        repo = self.repo
        try:
            with repo.git.custom_environment(**self._env):
                repo.git.commit("-m", message)
        except GitCommandError as e:
            self._unstage()
            raise CommitError(f"failed to commit: {_describe(e)}") from e

    def _unstage(self) -> None:
        """Reset the index to HEAD, leaving the working tree untouched.

        A failed operation must not leave changes staged for the next commit.
        """
        try:
            self.repo.git.reset("-q")
        except GitCommandError as e:
            logger.warning("failed to unstage after error: %s", _describe(e))

    def push(self) -> None:
        repo = self.repo
        try:
            with repo.git.custom_environment(**self._env):
                infos = repo.remote(self.remote).push(repo.active_branch.name)
        except GitCommandError as e:
            if _is_accepted(e, PUSH_ACCEPTED_ERRORS):
                return
            raise PushError(_describe(e)) from e
        except (ValueError, TypeError) as e:
            # unknown remote / detached HEAD
            raise PushError(str(e)) from e

        for info in infos:
            if info.flags & PushInfo.ERROR:
                summary = info.summary.strip()
                if _is_accepted(Exception(summary), PUSH_ACCEPTED_ERRORS):
                    continue
                raise PushError(summary or "push rejected")
