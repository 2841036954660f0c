"""Matching team members and roles onto Asana users and template roles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .schema import NamedResource, WorkspaceUser

MIN_MATCH_SCORE = 50.0


@dataclass(frozen=True, slots=True)
class UserMatch:
    user: WorkspaceUser
    score: float


def find_best_user_match(search_name: str, users: Iterable[WorkspaceUser]) -> UserMatch | None:
    """Fuzzy-match a team member name against workspace users.

    Scores: exact name 100; every search word contained in the user's name
    80 to 90 (more coverage scores higher); same first-name prefix and last
    name 70; any word longer than two characters contained 50. Below 50 there
    is no match.
    """

    search = search_name.strip().lower()
    if not search:
        return None
    search_parts = search.split()

    best: UserMatch | None = None
    for user in users:
        user_name = user.name.strip().lower()
        user_parts = user_name.split()
        if not user_parts:
            continue
        if user_name == search:
            return UserMatch(user=user, score=100.0)

        score = 0.0
        if all(part in user_name for part in search_parts):
            score = 80.0 + (len(search_parts) / len(user_parts)) * 10.0
        elif len(search_parts) >= 2 and len(user_parts) >= 2 and _first_and_last_match(
            search_parts, user_parts
        ):
            score = 70.0
        elif any(len(part) > 2 and part in user_name for part in search_parts):
            score = MIN_MATCH_SCORE

        if score and (best is None or score > best.score):
            best = UserMatch(user=user, score=score)

    return best if best is not None and best.score >= MIN_MATCH_SCORE else None


def _first_and_last_match(search_parts: Sequence[str], user_parts: Sequence[str]) -> bool:
    first_match = user_parts[0].startswith(search_parts[0]) or search_parts[0].startswith(
        user_parts[0]
    )
    return first_match and user_parts[-1] == search_parts[-1]


def role_matches(template_role: str, role_key: str) -> bool:
    """Whether a template's requested role corresponds to a form role key."""

    template = template_role.strip().lower()
    role = role_key.strip().lower().replace("_", " ")
    if not template or not role:
        return False
    return (
        role in template
        or template in role
        or ("coordinator" in role and "coordinator" in template)
        or ("owner" in role and ("owner" in template or "lead" in template))
        or ("lead" in role and "lead" in template)
    )


def build_requested_roles(
    template_roles: Iterable[NamedResource],
    role_users: Sequence[tuple[str, str]],
) -> list[dict[str, str]]:
    """Pair each template role with the first matching ``(role_key, user_gid)``."""

    requested: list[dict[str, str]] = []
    for template_role in template_roles:
        match = next(
            (
                user_gid
                for role_key, user_gid in role_users
                if role_matches(template_role.name, role_key)
            ),
            None,
        )
        if match is not None:
            requested.append({"gid": template_role.gid, "value": match})
    return requested
