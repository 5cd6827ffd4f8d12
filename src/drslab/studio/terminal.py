"""
Simulated terminal for the Studio workspace.

Commands act on the workspace files rather than a real filesystem. Anything
that is not a built-in can be answered by the AI development assistant.
"""

import logging
import shlex
from typing import TYPE_CHECKING, Callable, NamedTuple, Optional

from drslab.db.repositories import TerminalCommandRepository
from drslab.exceptions import (
    AIServiceError,
    NotFoundError,
    NothingToCommitError,
    PathConflictError,
)
from drslab.models.db import TerminalCommand
from drslab.studio.git import GitSimulator
from drslab.studio.paths import dir_to_cwd, list_directory, resolve
from drslab.studio.workspace import Workspace

if TYPE_CHECKING:
    from drslab.ai.service import AIService

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Available commands:\n"
    "  help, ls/dir, cat, cd, pwd, mkdir, touch, rm/del, clear/cls, echo, whoami, git"
)
GIT_HELP_TEXT = (
    "usage: git <command>\n"
    "  init, status, add, reset, commit, log, diff, remote, push, pull, clone"
)
SIMULATION_FAILED = (
    "Command simulation failed. In production, this would execute real commands."
)

# Exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MISSING_PATH = 2
EXIT_NOT_FOUND = 127
EXIT_GIT_FATAL = 128


class CommandResult(NamedTuple):
    """Output and exit code of one terminal command."""

    output: str
    exit_code: int = EXIT_OK


def tokenize(command: str) -> list[str]:
    """Split a command line shell-style, falling back to whitespace on bad quoting."""
    try:
        return shlex.split(command)
    except ValueError:
        return command.split()


class Terminal:
    """
    Terminal bound to one user's workspace.

    Args:
        workspace: The user's workspace
        ai_service: Used for ``git clone`` and for simulating unknown commands
        ai_simulation: Whether unknown commands are sent to the AI
    """

    def __init__(
        self,
        workspace: Workspace,
        ai_service: Optional["AIService"] = None,
        ai_simulation: bool = True,
    ):
        self.workspace = workspace
        self.git = GitSimulator(workspace)
        self.ai_service = ai_service
        self.ai_simulation = ai_simulation
        self.history = TerminalCommandRepository(workspace.session)
        self._builtins: dict[str, Callable[[list[str]], CommandResult]] = {
            "help": self._help,
            "ls": self._ls,
            "dir": self._ls,
            "cat": self._cat,
            "cd": self._cd,
            "pwd": self._pwd,
            "mkdir": self._mkdir,
            "touch": self._touch,
            "rm": self._rm,
            "del": self._rm,
            "clear": self._clear,
            "cls": self._clear,
            "echo": self._echo,
            "whoami": self._whoami,
            "git": self._git,
        }

    @property
    def cwd(self) -> str:
        return self.workspace.state.cwd

    def execute(self, command: str) -> TerminalCommand:
        """Run a command and record it in the user's terminal history."""
        result = self.run(command)
        record = self.history.create(
            user_id=self.workspace.user_id,
            command=command,
            output=result.output,
            exit_code=result.exit_code,
        )
        logger.debug(f"Executed {command!r} (exit {result.exit_code})")
        return record

    def run(self, command: str) -> CommandResult:
        """Run a command without recording it."""
        tokens = tokenize(command.strip())
        if not tokens:
            return CommandResult("")

        name, args = tokens[0], tokens[1:]
        handler = self._builtins.get(name)
        if handler is not None:
            return handler(args)
        return self._simulate(command.strip(), name)

    # Built-ins

    def _help(self, args: list[str]) -> CommandResult:
        return CommandResult(HELP_TEXT)

    def _ls(self, args: list[str]) -> CommandResult:
        target = args[0] if args else "."
        directory = resolve(self.cwd, target)
        paths = self.workspace.paths()
        if directory in paths:
            return CommandResult(directory.rsplit("/", 1)[-1])
        if not self.workspace.is_dir(directory):
            return CommandResult(
                f"ls: cannot access '{target}': No such file or directory",
                EXIT_MISSING_PATH,
            )
        return CommandResult("\n".join(list_directory(paths, directory)))

    def _cat(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult("Usage: cat <filename>", EXIT_ERROR)
        outputs = []
        for arg in args:
            content = self.workspace.read(resolve(self.cwd, arg))
            if content is None:
                return CommandResult(f"Error: File not found: {arg}", EXIT_ERROR)
            outputs.append(content)
        return CommandResult("\n".join(outputs))

    def _cd(self, args: list[str]) -> CommandResult:
        directory = resolve(self.cwd, args[0]) if args else ""
        if not self.workspace.is_dir(directory):
            return CommandResult(f"cd: no such file or directory: {args[0]}", EXIT_ERROR)
        self.workspace.state.cwd = dir_to_cwd(directory)
        self.workspace.session.flush()
        return CommandResult("")

    def _pwd(self, args: list[str]) -> CommandResult:
        return CommandResult(self.cwd)

    def _mkdir(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult("usage: mkdir <directory>", EXIT_ERROR)
        for arg in args:
            directory = resolve(self.cwd, arg)
            if self.workspace.get(f"{directory}/.gitkeep") is not None:
                continue
            try:
                self.workspace.write(f"{directory}/.gitkeep", "", "plaintext")
            except (ValueError, PathConflictError) as e:
                return CommandResult(
                    f"mkdir: cannot create directory '{arg}': {e}", EXIT_ERROR
                )
        return CommandResult("")

    def _touch(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult("usage: touch <filename>", EXIT_ERROR)
        for arg in args:
            path = resolve(self.cwd, arg)
            if self.workspace.get(path) is not None or self.workspace.is_dir(path):
                continue
            try:
                self.workspace.write(path, "")
            except (ValueError, PathConflictError) as e:
                return CommandResult(f"touch: cannot touch '{arg}': {e}", EXIT_ERROR)
        return CommandResult("")

    def _rm(self, args: list[str]) -> CommandResult:
        recursive = any(a in ("-r", "-rf", "-fr", "-R") for a in args)
        targets = [a for a in args if not a.startswith("-")]
        if not targets:
            return CommandResult("usage: rm [-r] <path>", EXIT_ERROR)

        for target in targets:
            path = resolve(self.cwd, target)
            if self.workspace.delete(path):
                continue
            if self.workspace.is_dir(path) and path:
                if not recursive:
                    return CommandResult(
                        f"rm: cannot remove '{target}': Is a directory", EXIT_ERROR
                    )
                self.workspace.delete_folder(path)
                continue
            return CommandResult(
                f"rm: cannot remove '{target}': No such file or directory", EXIT_ERROR
            )
        return CommandResult("")

    def _clear(self, args: list[str]) -> CommandResult:
        self.history.clear(self.workspace.user_id)
        return CommandResult("")

    def _echo(self, args: list[str]) -> CommandResult:
        return CommandResult(" ".join(args))

    def _whoami(self, args: list[str]) -> CommandResult:
        return CommandResult("developer")

    # git

    def _git(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult(GIT_HELP_TEXT, EXIT_ERROR)

        sub, rest = args[0], args[1:]
        handlers = {
            "init": self._git_init,
            "status": self._git_status,
            "add": self._git_add,
            "reset": self._git_reset,
            "restore": self._git_restore,
            "commit": self._git_commit,
            "log": self._git_log,
            "diff": self._git_diff,
            "remote": self._git_remote,
            "push": self._git_push,
            "pull": self._git_pull,
            "clone": self._git_clone,
        }
        handler = handlers.get(sub)
        if handler is None:
            return CommandResult(
                f"git: '{sub}' is not a git command. See 'git --help'.", EXIT_ERROR
            )
        return handler(rest)

    def _git_init(self, args: list[str]) -> CommandResult:
        self.git.init()
        return CommandResult("Initialized empty Git repository.")

    def _git_status(self, args: list[str]) -> CommandResult:
        return CommandResult(self.git.status_text())

    def _git_add(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult("usage: git add <file>", EXIT_ERROR)
        if any(a in (".", "-A", "--all") for a in args):
            staged = self.git.stage_all()
            return CommandResult(f"Staged {len(staged)} file(s)")

        for arg in args:
            try:
                self.git.stage(resolve(self.cwd, arg))
            except NotFoundError:
                return CommandResult(
                    f"fatal: pathspec '{arg}' did not match any files", EXIT_GIT_FATAL
                )
        return CommandResult(f"Staged {' '.join(args)}")

    def _git_reset(self, args: list[str]) -> CommandResult:
        paths = [a for a in args if not a.startswith("-")]
        if not paths:
            self.git.unstage_all()
            return CommandResult("Unstaged all changes.")
        for arg in paths:
            self.git.unstage(resolve(self.cwd, arg))
        return CommandResult(f"Unstaged {' '.join(paths)}")

    def _git_restore(self, args: list[str]) -> CommandResult:
        if "--staged" not in args:
            return CommandResult("usage: git restore --staged <file>", EXIT_ERROR)
        return self._git_reset([a for a in args if a != "--staged"])

    def _git_commit(self, args: list[str]) -> CommandResult:
        stage_all = "-a" in args or "-am" in args
        message = None
        for flag in ("-m", "-am"):
            if flag in args:
                index = args.index(flag)
                message = " ".join(args[index + 1:]).strip()
                break
        if not message:
            return CommandResult('usage: git commit -m "<message>"', EXIT_ERROR)

        if stage_all:
            self.git.stage_all()
        try:
            commit = self.git.commit(message)
        except NothingToCommitError as e:
            return CommandResult(f"On branch main\n{e}", EXIT_ERROR)
        return CommandResult(
            f"[main {commit.id.hex[:7]}] {message}\n"
            f" {len(commit.paths)} file(s) changed"
        )

    def _git_log(self, args: list[str]) -> CommandResult:
        commits = self.git.log()
        if not commits:
            return CommandResult(
                "fatal: your current branch 'main' does not have any commits yet",
                EXIT_GIT_FATAL,
            )
        entries = [
            f"commit {c.id.hex}\nDate:   {c.created_at:%a %b %d %H:%M:%S %Y}\n\n    {c.message}"
            for c in commits
        ]
        return CommandResult("\n\n".join(entries))

    def _git_diff(self, args: list[str]) -> CommandResult:
        changes = self.git.changes()
        paths = [resolve(self.cwd, a) for a in args] if args else list(changes)
        blocks = []
        for path in paths:
            if path not in changes:
                continue
            body = [
                {"add": "+", "del": "-", "same": " "}[line["type"]] + line["line"]
                for line in self.git.diff(path)
            ]
            blocks.append("\n".join([f"diff --git a/{path} b/{path}"] + body))
        return CommandResult("\n".join(blocks))

    def _git_remote(self, args: list[str]) -> CommandResult:
        if len(args) >= 3 and args[0] == "add" and args[1] == "origin":
            self.git.set_remote(args[2])
            return CommandResult("Set remote origin.")
        if not args or args == ["-v"]:
            url = self.git.remote_url
            return CommandResult(f"origin\t{url}" if url else "")
        return CommandResult("usage: git remote add origin <url>", EXIT_ERROR)

    def _git_push(self, args: list[str]) -> CommandResult:
        if not self.git.remote_url:
            return CommandResult("fatal: No configured push destination.", EXIT_GIT_FATAL)
        return CommandResult("Simulating push to remote...\nPush successful.")

    def _git_pull(self, args: list[str]) -> CommandResult:
        return CommandResult("Simulating pull from remote...\nAlready up-to-date.")

    def _git_clone(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult("usage: git clone <url>", EXIT_ERROR)
        url = args[0]
        if self.ai_service is None:
            return CommandResult(f"fatal: unable to access '{url}'", EXIT_GIT_FATAL)

        try:
            project = self.ai_service.generate_project(url, [])
        except AIServiceError as e:
            logger.error(f"Clone of {url} failed: {e}")
            return CommandResult(f"fatal: unable to access '{url}'", EXIT_GIT_FATAL)

        try:
            self.workspace.replace_all(
                [(f.path, f.content, f.language) for f in project.files]
            )
        except (ValueError, PathConflictError) as e:
            logger.error(f"Clone of {url} produced an unusable project: {e}")
            return CommandResult(f"fatal: invalid repository layout: {e}", EXIT_GIT_FATAL)
        self.git.set_remote(url)
        self.workspace.state.git_initialized = True
        self.workspace.state.cwd = "/"
        self.workspace.session.flush()
        return CommandResult(
            f"Cloning from {url}...\nCloned {project.project_name or url} "
            f"({len(project.files)} files)."
        )

    # Fallback

    def _simulate(self, command: str, name: str) -> CommandResult:
        if not self.ai_simulation or self.ai_service is None:
            return CommandResult(f"Command not found: {name}.", EXIT_NOT_FOUND)
        try:
            return CommandResult(self.ai_service.simulate_command(command))
        except AIServiceError as e:
            logger.warning(f"Command simulation failed for {command!r}: {e}")
            return CommandResult(SIMULATION_FAILED, EXIT_ERROR)
