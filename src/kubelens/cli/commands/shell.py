"""Interactive command shell.

A line-oriented front end on the same session as the browser: one view
over every kind keeps polling in the background while commands mark,
delete, and print documents. Useful over connections where a
full-screen UI is impractical, and scriptable through stdin.
"""

from __future__ import annotations

import asyncio
import shlex
from collections.abc import Awaitable, Callable

import structlog
import typer
from rich.console import Console
from rich.syntax import Syntax

from kubelens.cli.commands.base import (
    NamespaceOption,
    console,
    describe_error,
    get_config,
    handle_k8s_error,
)
from kubelens.integrations.kubernetes.exceptions import KubernetesError
from kubelens.integrations.kubernetes.kinds import OVERVIEW_KINDS, ResourceKind
from kubelens.render.layout import detail_document
from kubelens.state.deletion import DeletionExecutor
from kubelens.state.session import BrowserSession
from kubelens.state.snapshot import Fetched, Snapshot
from kubelens.tui.theme import Styles, tree_text

logger = structlog.get_logger()

InputFunc = Callable[[str], str]

PROMPT = "kubelens> "

HELP_TEXT = """\
Commands:
  list [KIND...]             Print the document for KINDs (default: overview)
  show KIND NAME             Print one resource as YAML
  mark KIND NAME...          Mark resources for deletion
  unmark KIND NAME...        Remove deletion marks
  unmark-all                 Remove every mark
  marks                      Show what is marked
  execute-marks [KIND...]    Delete marked resources after confirmation
  use-namespace [NAME]       Switch namespace (no NAME: the context's default)
  use-context NAME           Switch kubeconfig context
  refresh                    Fetch everything now
  help                       Show this help
  quit, exit                 Leave the shell"""


class ShellUsageError(ValueError):
    """A command line the shell cannot run."""


class CommandShell:
    """Read-eval-print loop over a ``BrowserSession``.

    Args:
        session: Session to operate on.
        output: Console that receives documents and messages.
        input_func: Reads one line given a prompt; raises EOFError at end
            of input. Called in a worker thread so polling continues while
            waiting.
    """

    def __init__(
        self,
        session: BrowserSession,
        output: Console,
        input_func: InputFunc = input,
    ) -> None:
        self._session = session
        self._console = output
        self._input = input_func
        self._failed = False
        self._handlers: dict[str, Callable[[list[str]], Awaitable[bool]]] = {
            "list": self._list,
            "show": self._show,
            "mark": self._mark,
            "unmark": self._unmark,
            "unmark-all": self._unmark_all,
            "marks": self._marks,
            "execute-marks": self._execute,
            "execute": self._execute,
            "use-namespace": self._use_namespace,
            "use-context": self._use_context,
            "refresh": self._refresh,
            "help": self._help,
            "quit": self._quit,
            "exit": self._quit,
        }

    @property
    def failed(self) -> bool:
        """Whether the most recent command failed."""
        return self._failed

    async def run(self) -> int:
        """Run until ``quit`` or end of input.

        Returns:
            Exit code: 1 if the last command failed, else 0.
        """
        handle = self._session.open_view(tuple(ResourceKind), self._on_snapshot)
        self._session.add_notifier(self._on_notification)
        try:
            while True:
                try:
                    line = await asyncio.to_thread(self._input, PROMPT)
                except EOFError:
                    break
                if not await self.execute(line):
                    break
        finally:
            self._session.remove_notifier(self._on_notification)
            self._session.close_view(handle)
            await self._session.close()
        return 1 if self._failed else 0

    async def execute(self, line: str) -> bool:
        """Run one command line.

        Returns:
            False when the shell should stop.
        """
        try:
            words = shlex.split(line)
        except ValueError as e:
            self._fail(f"Invalid command line: {e}")
            return True
        if not words:
            return True

        command, args = words[0], words[1:]
        handler = self._handlers.get(command)
        if handler is None:
            self._fail(f"Unknown command '{command}' (try 'help')")
            return True

        self._failed = False
        logger.debug("shell_command", command=command, args=args)
        try:
            return await handler(args)
        except ShellUsageError as e:
            self._fail(str(e))
        except KubernetesError as e:
            self._fail(describe_error(e))
        return True

    def _fail(self, message: str) -> None:
        self._failed = True
        self._console.print(Styles.error(message))

    def _on_snapshot(self, snapshot: Snapshot, refreshing: bool) -> None:
        """Documents are printed on demand; background updates are not shown."""

    def _on_notification(self, message: str, severity: str) -> None:
        if severity == "error":
            self._fail(message)
        else:
            self._console.print(Styles.muted(message))

    # -----------------------------------------------------------------------
    # Argument helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _kinds(args: list[str]) -> tuple[ResourceKind, ...]:
        try:
            return tuple(ResourceKind.parse(arg) for arg in args)
        except ValueError as e:
            raise ShellUsageError(str(e)) from e

    def _kind_and_names(self, command: str, args: list[str]) -> tuple[ResourceKind, list[str]]:
        if len(args) < 2:
            raise ShellUsageError(f"Usage: {command} KIND NAME...")
        (kind,) = self._kinds(args[:1])
        return kind, list(dict.fromkeys(args[1:]))

    async def _ensure_fetched(self, kinds: tuple[ResourceKind, ...]) -> None:
        snapshot = self._session.snapshot()
        missing = [k for k in kinds if not isinstance(snapshot.collection(k), Fetched)]
        await asyncio.gather(*(self._session.fetch_once(kind) for kind in missing))

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    async def _list(self, args: list[str]) -> bool:
        kinds = self._kinds(args) or OVERVIEW_KINDS
        await self._ensure_fetched(kinds)
        self._console.print(tree_text(self._session.render(kinds)))
        return True

    async def _show(self, args: list[str]) -> bool:
        if len(args) != 2:
            raise ShellUsageError("Usage: show KIND NAME")
        (kind,) = self._kinds(args[:1])
        await self._ensure_fetched((kind,))
        resource = self._session.lookup(kind, args[1])
        self._console.print(Syntax(detail_document(resource), "yaml", word_wrap=True))
        return True

    async def _mark(self, args: list[str]) -> bool:
        kind, names = self._kind_and_names("mark", args)
        if not kind.deletable:
            raise ShellUsageError(f"{kind.value} cannot be deleted")
        await self._ensure_fetched((kind,))
        for name in names:
            if not self._session.mark(kind, name):
                self._console.print(Styles.warning(f"{kind.singular} {name} is being deleted"))
        return True

    async def _unmark(self, args: list[str]) -> bool:
        kind, names = self._kind_and_names("unmark", args)
        for name in names:
            if not self._session.unmark(kind, name):
                self._console.print(Styles.warning(f"{kind.singular} {name} is not marked"))
        return True

    async def _unmark_all(self, args: list[str]) -> bool:
        self._session.unmark_all()
        self._console.print(Styles.muted("All marks removed"))
        return True

    async def _marks(self, args: list[str]) -> bool:
        plan = self._session.plan_deletion()
        if not plan:
            self._console.print(Styles.muted("Nothing is marked for deletion."))
        for kind, names in plan.items():
            self._console.print(f"{kind.title}: {', '.join(names)}")
        return True

    async def _execute(self, args: list[str]) -> bool:
        kinds = self._kinds(args) or None
        plan = self._session.plan_deletion()
        if kinds is not None:
            plan = {kind: names for kind, names in plan.items() if kind in kinds}
        if not plan:
            self._console.print(Styles.warning("Nothing is marked for deletion."))
            return True

        prompt = f"{DeletionExecutor.confirmation_message(plan)} [y/N] "
        try:
            answer = await asyncio.to_thread(self._input, prompt)
        except EOFError:
            answer = ""
        if answer.strip().lower() not in ("y", "yes"):
            self._console.print(Styles.muted("Cancelled"))
            return True

        self._session.execute_marks(list(plan))
        await self._session.deletions.wait()
        return True

    async def _use_namespace(self, args: list[str]) -> bool:
        if len(args) > 1:
            raise ShellUsageError("Usage: use-namespace [NAME]")
        namespace = args[0] if args else None
        self._session.use_namespace(namespace)
        self._console.print(Styles.muted(f"Namespace: {namespace or '(context default)'}"))
        return True

    async def _use_context(self, args: list[str]) -> bool:
        if len(args) != 1:
            raise ShellUsageError("Usage: use-context NAME")
        await self._session.use_context(args[0])
        self._console.print(Styles.muted(f"Context: {args[0]}"))
        return True

    async def _refresh(self, args: list[str]) -> bool:
        self._session.refresh()
        return True

    async def _help(self, args: list[str]) -> bool:
        self._console.print(HELP_TEXT, markup=False, highlight=False)
        return True

    async def _quit(self, args: list[str]) -> bool:
        return False


def shell(
    ctx: typer.Context,
    namespace: NamespaceOption = None,
) -> None:
    """Start the interactive command shell.

    Reads commands from stdin; type 'help' for the list. The exit code is
    1 if the last command failed.

    Examples:
        kubelens shell
        printf 'mark pods web-1\\nexecute-marks\\ny\\n' | kubelens shell
    """
    config = get_config(ctx, namespace)
    try:
        session = BrowserSession(config)
    except KubernetesError as e:
        handle_k8s_error(e)
    code = asyncio.run(CommandShell(session, console).run())
    raise typer.Exit(code)
