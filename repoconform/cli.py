"""Command-line entry point.

``repoconform check`` reports repositories whose settings differ from the
preferences; ``repoconform apply`` also offers to fix them. Running without a
command behaves like ``apply`` and prompts for everything it is not given.

Exit codes: 0 on success, 1 when the run stops (fatal error, invalid input or
a cancelled prompt), 2 when at least one repository could not be updated.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import functools
import os
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter

from repoconform.conformance import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_SELECTION_FILE,
    SelectionFileError,
    filter_repositories,
    load_selection,
    save_selection,
    selection_keys,
)
from repoconform.config import RunConfig
from repoconform.github import (
    GitHubConfig,
    GitHubConfigError,
    GitHubRepositoryClient,
    RepositorySettingsClient,
)
from repoconform.logging import configure_logging, get_logger, log_info, log_warning
from repoconform.pipeline import ConformanceRun, FatalRunError, ScanResult, Selector
from repoconform.preferences import (
    PreferenceSet,
    PreferencesValidationError,
    load_preferences,
)
from repoconform.prompts import (
    PromptCancelledError,
    prompt_confirm_update,
    prompt_preferences,
    prompt_repository_selection,
    prompt_select_all,
    prompt_token,
)

if typ.TYPE_CHECKING:
    from repoconform.conformance import BatchUpdateResult, NonConformingRepository
    from repoconform.github import RepositorySnapshot

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_WRITE_FAILURES = 2

app = App(
    name="repoconform",
    help="Find and fix GitHub repositories that drift from your preferred settings",
    version="0.1.0",
)

ClientFactory: typ.TypeAlias = (
    "cabc.Callable[[], cabc.Awaitable[RepositorySettingsClient]]"
)


@dataclasses.dataclass(frozen=True, slots=True)
class RunOptions:
    """Options shared by ``check`` and ``apply``.

    ``interactive`` marks the default command, which asks how to authenticate
    instead of reading ``GITHUB_TOKEN`` silently.
    """

    preferences_file: Path | None = None
    all_repositories: bool = False
    from_file: bool = False
    repositories_file: Path = Path(DEFAULT_SELECTION_FILE)
    save_selection: bool = False
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    assume_yes: bool = False
    interactive: bool = False

    def __post_init__(self) -> None:
        """Reject a concurrency bound that could never run a write."""
        if self.max_concurrency < 1:
            msg = f"--max-concurrency must be positive, got {self.max_concurrency}"
            raise ValueError(msg)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def render_non_conforming(
    non_conforming: cabc.Sequence[NonConformingRepository],
) -> list[str]:
    """Return console lines listing each repository and its differing settings."""
    count = len(non_conforming)
    lines = [
        f"Of your repositories, {count} "
        f"{_plural(count, 'differs', 'differ')} from your preferred settings:"
    ]
    lines.extend(
        f"  {repo.name}: {', '.join(setting.value for setting in repo.settings)}"
        for repo in non_conforming
    )
    return lines


def render_update_result(result: BatchUpdateResult) -> list[str]:
    """Return console lines summarising a batch of writes."""
    succeeded = len(result.succeeded)
    lines = [
        f"Successfully updated {succeeded} "
        f"{_plural(succeeded, 'repository', 'repositories')}."
    ]
    if result.failed:
        failed = len(result.failed)
        noun = _plural(failed, "repository", "repositories")
        lines.append(f"Failed to update {failed} {noun}:")
        lines.extend(
            f"  {outcome.name} ({outcome.category}): {outcome.error}"
            for outcome in result.failed
        )
        lines.append(
            "Re-run to retry; repositories that were updated will no longer be "
            "flagged."
        )
    return lines


def _emit(lines: cabc.Iterable[str]) -> None:
    for line in lines:
        print(line)


def _invalid_input(exc: Exception) -> int:
    print(f"Invalid input: {exc}", file=sys.stderr)
    return EXIT_FATAL


async def connect(*, interactive: bool) -> RepositorySettingsClient:
    """Open a GitHub session.

    Interactive runs ask how to authenticate unless
    ``REPOCONFORM_GITHUB_TOKEN`` is set; the prompt offers ``GITHUB_TOKEN``
    when it is present. Other runs read the environment and only prompt when
    no token is configured.
    """
    if interactive and not os.environ.get("REPOCONFORM_GITHUB_TOKEN", "").strip():
        return GitHubRepositoryClient(GitHubConfig.from_env(await prompt_token()))
    try:
        config = GitHubConfig.from_env()
    except GitHubConfigError:
        config = GitHubConfig.from_env(await prompt_token())
    return GitHubRepositoryClient(config)


def _build_selector(options: RunOptions) -> Selector | None:
    """Return the selection step implied by ``options``, or None for all."""
    if options.all_repositories:
        return None

    references = load_selection(options.repositories_file)
    keys = selection_keys(references)

    async def _select(
        repositories: cabc.Sequence[RepositorySnapshot],
    ) -> list[RepositorySnapshot]:
        if options.from_file:
            chosen = filter_repositories(repositories, select_all=False, selected=keys)
        elif await prompt_select_all():
            chosen = list(repositories)
        else:
            chosen = await prompt_repository_selection(
                repositories, preselected=set(keys)
            )
            print(f"Selected {len(chosen)} repositories.")
        if options.save_selection:
            save_selection(options.repositories_file, chosen)
        return chosen

    return _select


async def _resolve_preferences(options: RunOptions) -> PreferenceSet:
    if options.preferences_file is not None:
        preferences = load_preferences(options.preferences_file)
    else:
        preferences = await prompt_preferences()
    summary = preferences.describe()
    log_info(
        logger,
        "Preferences: %s",
        ", ".join(f"{name}={value}" for name, value in summary.items()),
    )
    return preferences


def _report_scan(scan: ScanResult) -> None:
    if scan.is_compliant:
        print(
            "All your repositories are using your preferred settings. "
            f"Checked {len(scan.selected)} repositories."
        )
        return
    _emit(render_non_conforming(scan.non_conforming))


async def run(
    options: RunOptions,
    *,
    apply_changes: bool,
    client_factory: ClientFactory | None = None,
) -> int:
    """Execute a check or apply run and return the process exit code."""
    factory = client_factory or functools.partial(
        connect, interactive=options.interactive
    )
    try:
        preferences = await _resolve_preferences(options)
        selector = _build_selector(options)
        client = await factory()
    except (PreferencesValidationError, SelectionFileError) as exc:
        return _invalid_input(exc)
    except PromptCancelledError:
        print("Cancelled.", file=sys.stderr)
        return EXIT_FATAL

    if preferences.is_empty:
        log_warning(logger, "No settings are enforced; nothing will be flagged")

    conformance = ConformanceRun(
        client, preferences, selector=selector, max_concurrency=options.max_concurrency
    )
    try:
        scan = await conformance.scan()
        _report_scan(scan)
        if not apply_changes or scan.is_compliant:
            return EXIT_OK
        if not options.assume_yes and not await prompt_confirm_update():
            return EXIT_OK
        result = await conformance.apply(scan)
    except FatalRunError as exc:
        if isinstance(exc.cause, PromptCancelledError):
            print("Cancelled.", file=sys.stderr)
        else:
            print(f"Error during {exc.phase}: {exc.cause}", file=sys.stderr)
        return EXIT_FATAL
    except PromptCancelledError:
        print("Cancelled.", file=sys.stderr)
        return EXIT_FATAL
    finally:
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()

    _emit(render_update_result(result))
    return EXIT_OK if result.all_succeeded else EXIT_WRITE_FAILURES


def build_options(  # noqa: PLR0913
    config: RunConfig,
    *,
    preferences: Path | None = None,
    all_repositories: bool = False,
    from_file: bool = False,
    repositories_file: Path | None = None,
    save: bool = False,
    max_concurrency: int | None = None,
    assume_yes: bool = False,
    interactive: bool = False,
) -> RunOptions:
    """Merge command-line values over ``config``.

    Raises
    ------
    ValueError
        If ``max_concurrency`` is not positive.

    """
    return RunOptions(
        preferences_file=preferences or config.preferences_file,
        all_repositories=all_repositories,
        from_file=from_file,
        repositories_file=repositories_file or config.repositories_file,
        save_selection=save,
        max_concurrency=(
            config.max_concurrency if max_concurrency is None else max_concurrency
        ),
        assume_yes=assume_yes,
        interactive=interactive,
    )


def _setup_logging(raw: str) -> None:
    normalized, invalid = configure_logging(raw)
    if invalid:
        log_warning(logger, "Invalid log level %r, falling back to %s", raw, normalized)


def _execute(options: RunOptions, *, apply_changes: bool) -> int:
    return asyncio.run(run(options, apply_changes=apply_changes))


def _launch(
    build: cabc.Callable[[RunConfig], RunOptions],
    *,
    log_level: str | None,
    apply_changes: bool,
) -> int:
    """Validate configuration, then run; bad input stops before any request."""
    try:
        config = RunConfig.from_env()
        options = build(config)
    except ValueError as exc:
        return _invalid_input(exc)
    _setup_logging(log_level or config.log_level)
    return _execute(options, apply_changes=apply_changes)


@app.command
def check(  # noqa: PLR0913
    *,
    preferences: Path | None = None,
    all_repositories: typ.Annotated[bool, Parameter(name="--all")] = False,
    from_file: bool = False,
    repositories_file: Path | None = None,
    save_selection: bool = False,
    log_level: str | None = None,
) -> int:
    """Report repositories whose settings differ from the preferences.

    Parameters
    ----------
    preferences
        YAML or JSON preferences file; defaults to ``REPOCONFORM_PREFERENCES``.
        Prompted for when neither is given.
    all_repositories
        Check every owned repository without asking.
    from_file
        Check only the repositories listed in the selection file.
    repositories_file
        Selection file (default ``repositories.json``).
    save_selection
        Write the chosen repositories back to the selection file.
    log_level
        Log level; defaults to ``REPOCONFORM_LOG_LEVEL`` or INFO.

    """
    build = functools.partial(
        build_options,
        preferences=preferences,
        all_repositories=all_repositories,
        from_file=from_file,
        repositories_file=repositories_file,
        save=save_selection,
    )
    return _launch(build, log_level=log_level, apply_changes=False)


@app.command
def apply(  # noqa: PLR0913
    *,
    preferences: Path | None = None,
    all_repositories: typ.Annotated[bool, Parameter(name="--all")] = False,
    from_file: bool = False,
    repositories_file: Path | None = None,
    save_selection: bool = False,
    max_concurrency: int | None = None,
    yes: bool = False,
    log_level: str | None = None,
) -> int:
    """Report differing repositories and update them to the preferences.

    Parameters
    ----------
    preferences
        YAML or JSON preferences file; defaults to ``REPOCONFORM_PREFERENCES``.
        Prompted for when neither is given.
    all_repositories
        Enforce on every owned repository without asking.
    from_file
        Enforce only on the repositories listed in the selection file.
    repositories_file
        Selection file (default ``repositories.json``).
    save_selection
        Write the chosen repositories back to the selection file.
    max_concurrency
        Maximum concurrent repository updates; defaults to
        ``REPOCONFORM_MAX_CONCURRENCY`` or 10.
    yes
        Update without asking for confirmation.
    log_level
        Log level; defaults to ``REPOCONFORM_LOG_LEVEL`` or INFO.

    """
    build = functools.partial(
        build_options,
        preferences=preferences,
        all_repositories=all_repositories,
        from_file=from_file,
        repositories_file=repositories_file,
        save=save_selection,
        max_concurrency=max_concurrency,
        assume_yes=yes,
    )
    return _launch(build, log_level=log_level, apply_changes=True)


@app.default
def interactive(*, log_level: str | None = None) -> int:
    """Prompt for credentials, preferences and repositories, then apply.

    Parameters
    ----------
    log_level
        Log level; defaults to ``REPOCONFORM_LOG_LEVEL`` or INFO.

    """
    build = functools.partial(build_options, interactive=True)
    return _launch(build, log_level=log_level, apply_changes=True)


def main() -> int:
    """Entry point for the ``repoconform`` console script."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
