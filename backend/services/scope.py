"""
Authorization Scope
===================
Maps a caller's role and university to the module IDs they may query.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

import structlog

from backend.config import settings
from backend.schemas.events import Caller, CourseRef, ModuleRef, UserRole
from backend.schemas.filters import AnalyticsFilter
from backend.sources.base import HierarchySource

logger = structlog.get_logger()


@dataclass(frozen=True)
class HierarchySnapshot:
    """
    Module -> course -> university lookup built once per request.

    All reads within one analytics call go through the same snapshot so
    the mapping stays internally consistent.
    """

    modules: dict[int, ModuleRef] = field(default_factory=dict)
    courses: dict[int, CourseRef] = field(default_factory=dict)

    @classmethod
    def build(cls, modules: Iterable[ModuleRef], courses: Iterable[CourseRef]) -> "HierarchySnapshot":
        return cls(
            modules={m.id: m for m in modules},
            courses={c.id: c for c in courses},
        )

    def course_of(self, module_id: int) -> Optional[int]:
        module = self.modules.get(module_id)
        return module.course_id if module else None

    def university_of(self, module_id: int) -> Optional[int]:
        course_id = self.course_of(module_id)
        if course_id is None:
            return None
        course = self.courses.get(course_id)
        return course.university_id if course else None

    def module_name(self, module_id: int) -> str:
        module = self.modules.get(module_id)
        return module.name if module and module.name else f"Module {module_id}"

    def course_ids_for_university(self, university_id: int) -> set[int]:
        return {c.id for c in self.courses.values() if c.university_id == university_id}


class AuthorizationScopeResolver:
    """
    Resolve the set of module IDs a caller may see.

    Fail-closed: unknown roles, unknown modules and out-of-scope filters
    all resolve to an empty list rather than raising.
    """

    def __init__(self, hierarchy: HierarchySource, professor_course_limit: Optional[int] = None):
        self.hierarchy = hierarchy
        self.professor_course_limit = professor_course_limit or settings.professor_course_limit

    async def load_snapshot(self) -> HierarchySnapshot:
        modules = await self.hierarchy.list_modules()
        courses = await self.hierarchy.list_courses()
        return HierarchySnapshot.build(modules, courses)

    async def resolve(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> list[int]:
        """
        Module IDs visible to the caller, narrowed by the filters.

        Returns:
            Module IDs in hierarchy order; empty when access is denied
        """
        role = _parse_role(caller.role)
        if role is None:
            logger.warning("Analytics requested with unknown role", user_id=caller.user_id, role=caller.role)
            return []

        if snapshot is None:
            snapshot = await self.load_snapshot()

        if filters.module_id is not None:
            module = snapshot.modules.get(filters.module_id)
            if module is None:
                return []
            allowed = await self._can_access_module(caller, role, module, snapshot)
            return [module.id] if allowed else []

        if role is UserRole.SUPER_ADMIN:
            course_ids = None
            if filters.university_id is not None:
                course_ids = snapshot.course_ids_for_university(filters.university_id)
        elif role is UserRole.PROFESSOR:
            course_ids = set(await self._professor_course_ids(caller.user_id))
        else:
            if caller.university_id is None:
                return []
            course_ids = snapshot.course_ids_for_university(caller.university_id)

        if filters.course_id is not None:
            if course_ids is not None and filters.course_id not in course_ids:
                return []
            course_ids = {filters.course_id}

        module_ids = [
            m.id for m in snapshot.modules.values()
            if course_ids is None or m.course_id in course_ids
        ]

        if filters.university_id is not None and role is not UserRole.SUPER_ADMIN:
            module_ids = [
                mid for mid in module_ids
                if snapshot.university_of(mid) == filters.university_id
            ]

        return module_ids

    async def _can_access_module(
        self,
        caller: Caller,
        role: UserRole,
        module: ModuleRef,
        snapshot: HierarchySnapshot,
    ) -> bool:
        if role is UserRole.SUPER_ADMIN:
            return True
        if role is UserRole.PROFESSOR:
            return module.course_id in await self._professor_course_ids(caller.user_id)
        if caller.university_id is None:
            return False
        return snapshot.university_of(module.id) == caller.university_id

    async def _professor_course_ids(self, professor_id: int) -> list[int]:
        course_ids = await self.hierarchy.professor_course_ids(professor_id, self.professor_course_limit)
        if len(course_ids) >= self.professor_course_limit:
            logger.warning(
                "Professor reached the course assignment limit",
                professor_id=professor_id,
                limit=self.professor_course_limit,
            )
        return course_ids


def _parse_role(role: Optional[str]) -> Optional[UserRole]:
    if not role:
        return None
    try:
        return UserRole(role.strip().lower())
    except ValueError:
        return None
