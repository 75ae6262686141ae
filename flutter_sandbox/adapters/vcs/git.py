"""
Git adapter — SDK source acquisition.

Provides the git operations the bootstrapper needs (clone, checkout,
fetch-tags, describe, branch) through the adapter protocol. Uses the
git CLI — never raw API calls.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from flutter_sandbox.adapters.base import Adapter, ExecutionContext
from flutter_sandbox.core.models.action import Receipt

logger = logging.getLogger(__name__)

_OPERATIONS = {"clone", "checkout", "fetch_tags", "describe", "branch"}


class GitAdapter(Adapter):
    """Git version control operations.

    Action params:
        operation (str): One of 'clone', 'checkout', 'fetch_tags',
                         'describe', 'branch'.
        repository (str): Remote URL (for 'clone').
        branch (str): Branch to clone (for 'clone').
        depth (int): Shallow clone depth (for 'clone', default: 1; 0 = full).
        dest (str): Clone destination (for 'clone').
        repo_dir (str): Existing checkout (for every other operation).
        ref (str): Tag or branch to check out (for 'checkout').
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in _OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_OPERATIONS))}"

        if operation == "clone":
            for key in ("repository", "dest"):
                if not params.get(key):
                    return False, f"Missing required param: '{key}' for clone operation"
            return True, ""

        repo_dir = params.get("repo_dir", "")
        if not repo_dir:
            return False, f"Missing required param: 'repo_dir' for {operation} operation"
        if not context.dry_run and not Path(repo_dir).is_dir():
            return False, f"Repository directory does not exist: {repo_dir}"

        if operation == "checkout" and not params.get("ref"):
            return False, "Missing required param: 'ref' for checkout operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]

        if operation == "clone":
            return self._clone(context)

        repo_dir = params["repo_dir"]
        if operation == "checkout":
            return self._run(context, ["git", "checkout", params["ref"]], cwd=repo_dir, ref=params["ref"])
        if operation == "fetch_tags":
            return self._run(context, ["git", "fetch", "--all", "--tags"], cwd=repo_dir)
        if operation == "describe":
            return self._run(context, ["git", "describe", "--tags", "--exact-match"], cwd=repo_dir)
        return self._run(context, ["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_dir)

    def _clone(self, ctx: ExecutionContext) -> Receipt:
        params = ctx.action.params
        cmd = ["git", "clone"]
        depth = int(params.get("depth", 1))
        if depth > 0:
            cmd += ["--depth", str(depth)]
        if params.get("branch"):
            cmd += ["--branch", params["branch"]]
        cmd += [params["repository"], str(params["dest"])]
        return self._run(ctx, cmd, dest=str(params["dest"]))
