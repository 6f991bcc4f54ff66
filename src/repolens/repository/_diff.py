"""File diffs for commits and the working tree.

DiffEngine offers two routes to the same FileDiff shape. The structured
route reads blobs through the object graph and feeds StructuredHunkBuilder;
the textual route runs `git diff` and feeds TextHunkBuilder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from repolens.repository._hunks import (
    DEV_NULL,
    StructuredHunkBuilder,
    TextHunkBuilder,
    split_lines,
    structured_events,
    synthesize_addition,
    synthesize_deletion,
)
from repolens.repository._models import FileDiff
from repolens.utils._git import decode_bytes, normalize_sha

if TYPE_CHECKING:
    from repolens.repository._base import GitRepository
    from repolens.repository._protocol import HunkBuilder

# Same window git uses to sniff binary content
_BINARY_SNIFF_BYTES: Final = 8000
_TEXT_DIFF_OPTIONS: Final = ("--no-color", "--no-ext-diff")


def is_binary(content: bytes | str | None) -> bool:
    """Check whether content looks binary (contains a NUL byte early on)."""
    if content is None:
        return False
    sample = content[:_BINARY_SNIFF_BYTES]
    if isinstance(sample, bytes):
        return b"\0" in sample
    return "\0" in sample


def binary_diff(path: str, *, old_exists: bool, new_exists: bool) -> FileDiff:
    """Build the hunk-less diff reported for binary content."""
    old_label = f"a/{path}" if old_exists else DEV_NULL
    new_label = f"b/{path}" if new_exists else DEV_NULL
    return FileDiff(
        diff=f"Binary files {old_label} and {new_label} differ\n",
        hunks=(),
        file_path=path,
    )


def empty_diff(path: str, *, degraded: bool = False) -> FileDiff:
    """Build a diff with no text and no hunks."""
    return FileDiff(diff="", hunks=(), file_path=path, degraded=degraded)


def _collect(builder: HunkBuilder) -> FileDiff:
    return builder.result()


class DiffEngine:
    """Produce FileDiff values for a single path."""

    __slots__: Final = ("_context", "_repo")

    def __init__(self, repo: GitRepository, *, context_lines: int | None = None) -> None:
        """Initialize the engine.

        Args:
            repo: Open repository.
            context_lines: Context lines for structured diffs. Defaults to the
                repository configuration.
        """
        self._repo: GitRepository = repo
        self._context: int = (
            context_lines if context_lines is not None else repo.config.context_lines
        )

    # =========================================================================
    # Structured Route
    # =========================================================================

    def commit_file_diff(self, commit: str, path: str) -> FileDiff:
        """Diff one path between a commit and its first parent.

        A root commit is compared with the empty tree, so every file it
        contains is a pure addition.

        Args:
            commit: Revision of the commit.
            path: Repository-relative path.

        Returns:
            The diff. Degraded and empty if the commit cannot be resolved.
        """
        target = self._repo.resolve_commit(commit)
        if target is None:
            self._repo.logger.debug("diff_commit_unresolved", revision=commit, path=path)
            return empty_diff(path, degraded=True)
        parent = target.parents[0] if target.parents else None
        return self.diff_contents(
            path,
            self._repo.read_tree_blob(parent, path),
            self._repo.read_tree_blob(target, path),
        )

    def working_file_diff(self, path: str, *, staged: bool = False) -> FileDiff:
        """Diff one path in the live repository.

        Args:
            path: Repository-relative path.
            staged: Compare HEAD with the index instead of the index with
                the working tree. An unborn HEAD is an empty tree.

        Returns:
            The diff. Untracked paths have an empty unstaged diff.
        """
        if staged:
            old = self._repo.read_tree_blob(self._repo.head_commit(), path)
            new = self._repo.read_index_blob(path)
        else:
            old = self._repo.read_index_blob(path)
            if old is None:
                return empty_diff(path)
            new = self._repo.read_worktree(path)
        return self.diff_contents(path, old, new)

    def diff_contents(self, path: str, old: bytes | None, new: bytes | None) -> FileDiff:
        """Diff two versions of a path, either of which may be absent.

        Args:
            path: Repository-relative path.
            old: Old content, None if the path is absent on the old side.
            new: New content, None if the path is absent on the new side.

        Returns:
            A pure addition, a pure deletion, a modification, a binary
            notice, or an empty diff.
        """
        if old is None and new is None:
            return empty_diff(path)
        if is_binary(old) or is_binary(new):
            return binary_diff(path, old_exists=old is not None, new_exists=new is not None)

        builder = StructuredHunkBuilder(path)
        if old is None:
            builder.consume(synthesize_addition(path, decode_bytes(new or b"")))
        elif new is None:
            builder.consume(synthesize_deletion(path, decode_bytes(old)))
        else:
            builder.consume(
                structured_events(
                    path, decode_bytes(old), decode_bytes(new), context=self._context
                )
            )
        return _collect(builder)

    # =========================================================================
    # Textual Route
    # =========================================================================

    def text_diff(
        self,
        path: str,
        ref: str | None = None,
        *,
        staged: bool = False,
    ) -> FileDiff:
        """Diff one path using `git diff` output.

        With a ref, the commit is compared with its parent. A root commit has
        no parent to diff against, so the whole file is returned as added
        lines without hunks and flagged degraded. Without a ref, the working
        tree (or the index when staged) is compared with the index (or HEAD).

        Args:
            path: Repository-relative path.
            ref: Commit revision, or None for the live repository.
            staged: Without a ref, diff the index against HEAD.

        Returns:
            The parsed diff.
        """
        if ref:
            return self._ref_text_diff(path, ref)
        args = ["diff", *_TEXT_DIFF_OPTIONS]
        if staged:
            args.append("--cached")
        args.extend(["--", path])
        return self._parse(path, self._repo.run_git(args).stdout)

    def _ref_text_diff(self, path: str, ref: str) -> FileDiff:
        parent_result = self._repo.run_git(
            ["rev-parse", "--verify", "--quiet", f"{ref}^"], check=False
        )
        if not parent_result.ok:
            return self._root_text_diff(path, ref)

        parent = normalize_sha(parent_result.stdout)
        in_parent = self._exists(parent, path)
        in_ref = self._exists(ref, path)
        if in_parent and in_ref:
            result = self._repo.run_git(
                ["diff", *_TEXT_DIFF_OPTIONS, parent, ref, "--", path]
            )
            return self._parse(path, result.stdout)
        if in_ref:
            return self.diff_contents(path, None, self._show(ref, path))
        if in_parent:
            return self.diff_contents(path, self._show(parent, path), None)
        return empty_diff(path)

    def _root_text_diff(self, path: str, ref: str) -> FileDiff:
        content = self._show(ref, path)
        if content is None:
            return empty_diff(path)
        if is_binary(content):
            return binary_diff(path, old_exists=False, new_exists=True)
        lines = split_lines(decode_bytes(content))
        text = "".join(f"+{line}\n" for line in lines)
        self._repo.logger.debug("diff_root_commit_fallback", revision=ref, path=path)
        return FileDiff(diff=text, hunks=(), file_path=path, degraded=True)

    def _exists(self, revision: str, path: str) -> bool:
        return self._repo.run_git(["cat-file", "-e", f"{revision}:{path}"], check=False).ok

    def _show(self, revision: str, path: str) -> bytes | None:
        result = self._repo.run_git(["show", f"{revision}:{path}"], check=False)
        if not result.ok:
            return None
        return result.stdout.encode("utf-8")

    def _parse(self, path: str, text: str) -> FileDiff:
        builder = TextHunkBuilder(path)
        builder.feed(text)
        if builder.malformed:
            self._repo.logger.warning(
                "diff_hunk_headers_skipped", path=path, headers=list(builder.malformed)
            )
        return _collect(builder)
