"""Interactive prompts built on questionary.

Every prompt answers ``None`` when the user presses Ctrl+C; that is turned
into :class:`PromptCancelledError` so the CLI can stop cleanly at any prompt.
"""

from __future__ import annotations

import collections.abc as cabc
import os
import typing as typ

import questionary

from repoconform.preferences import PreferenceSet
from repoconform.settings import SETTING_SPECS

if typ.TYPE_CHECKING:
    from repoconform.github import RepositorySnapshot

TOKEN_URL = "https://github.com/settings/tokens/new?scopes=repo"
TOKEN_PREFIXES = ("ghp_", "github_pat_")

_NOT_ENFORCED = "not-enforced"
_PREFERENCE_CHOICES = (
    ("Don't enforce", _NOT_ENFORCED),
    ("Yes", True),
    ("No", False),
)


class PromptCancelledError(Exception):
    """Raised when the user aborts a prompt."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("prompt cancelled")


T = typ.TypeVar("T")


def _answered(answer: T | None) -> T:
    if answer is None:
        raise PromptCancelledError
    return answer


def validate_token(value: str) -> bool | str:
    """Return True for plausible tokens, or a message questionary shows inline."""
    if value.strip().startswith(TOKEN_PREFIXES):
        return True
    return "Your token should start with ghp_ or github_pat_"


async def prompt_token() -> str:
    """Ask for a token, offering ``GITHUB_TOKEN`` when it is set."""
    env_token = os.environ.get("GITHUB_TOKEN", "").strip()
    if env_token:
        use_env = _answered(
            await questionary.select(
                "How would you like to authenticate?",
                choices=[
                    questionary.Choice("Use GITHUB_TOKEN from environment", True),
                    questionary.Choice("Enter a token", False),
                ],
            ).ask_async()
        )
        if use_env:
            return env_token

    print(f"Create a token at {TOKEN_URL}")
    token = _answered(
        await questionary.password(
            "GitHub access token:", validate=validate_token
        ).ask_async()
    )
    return token.strip()


async def prompt_preferences() -> PreferenceSet:
    """Ask for the desired value of every setting."""
    print("What are your preferred settings?")
    values: dict[str, bool | None] = {}
    for spec in SETTING_SPECS.values():
        answer = _answered(
            await questionary.select(
                f"{spec.label}:",
                choices=[
                    questionary.Choice(title, value)
                    for title, value in _PREFERENCE_CHOICES
                ],
            ).ask_async()
        )
        values[spec.attribute] = None if answer == _NOT_ENFORCED else answer
    return PreferenceSet.from_mapping(values)


async def prompt_select_all() -> bool:
    """Ask whether to enforce on every fetched repository."""
    return _answered(
        await questionary.confirm(
            "Would you like to enforce settings on all repositories?", default=True
        ).ask_async()
    )


async def prompt_repository_selection(
    repositories: cabc.Sequence[RepositorySnapshot],
    *,
    preselected: cabc.Collection[str] = (),
) -> list[RepositorySnapshot]:
    """Multi-select repositories; ``preselected`` ids or names start checked."""
    chosen = _answered(
        await questionary.checkbox(
            "Which repositories would you like to enforce settings on?",
            choices=[
                questionary.Choice(
                    repo.name,
                    repo.id,
                    checked=repo.id in preselected or repo.name in preselected,
                )
                for repo in repositories
            ],
        ).ask_async()
    )
    wanted = set(chosen)
    return [repo for repo in repositories if repo.id in wanted]


async def prompt_confirm_update() -> bool:
    """Ask whether to update the non-conforming repositories."""
    return _answered(
        await questionary.confirm(
            "Do you want to automatically update these repositories?", default=False
        ).ask_async()
    )
