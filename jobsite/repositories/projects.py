"""
Project repository.

Projects are created by the onboarding flow and only ever change status;
they are never deleted.
"""

import logging
from typing import List, Optional

from ..models.entities import Project, ProjectStatus
from .base import CollectionKeys, CollectionRepository, generate_id

logger = logging.getLogger(__name__)


class ProjectRepository(CollectionRepository):
    """Repository for project operations."""

    collection_key = CollectionKeys.PROJECTS

    async def get_all(self) -> List[Project]:
        return [Project.model_validate(record) for record in await self._load()]

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        for record in await self._load():
            if record.get("id") == project_id:
                return Project.model_validate(record)
        logger.debug(f"Project not found: {project_id}")
        return None

    async def get_for_user(self, user_id: str) -> List[Project]:
        """Projects the user is a team member of."""
        return [p for p in await self.get_all() if user_id in p.team_member_ids]

    async def create(
        self,
        name: str,
        address: str = "",
        contract_number: str = "",
        start_date: str = "",
        end_date: str = "",
        team_member_ids: Optional[List[str]] = None,
        project_id: Optional[str] = None,
    ) -> Project:
        """Create a new active project."""
        now = self.clock()
        project = Project(
            id=project_id or generate_id("project"),
            name=name,
            address=address,
            contract_number=contract_number,
            status=ProjectStatus.ACTIVE,
            start_date=start_date,
            end_date=end_date,
            team_member_ids=list(team_member_ids or []),
            created_at=now,
            updated_at=now,
        )

        async with self._write_lock():
            records = await self._load()
            records.append(project.to_storage())
            await self._save(records)

        logger.info(f"Created project: {name}")
        return project

    async def update_status(self, project_id: str, status: ProjectStatus) -> Optional[Project]:
        """Change a project's status. Returns None if the project does not exist."""
        async with self._write_lock():
            records = await self._load()
            index = self._index_of(records, project_id)
            if index == -1:
                return None

            project = Project.model_validate(records[index]).model_copy(
                update={"status": ProjectStatus(status), "updated_at": self.clock()}
            )
            records[index] = project.to_storage()
            await self._save(records)

        logger.info(f"Project {project_id} status -> {project.status.value}")
        return project

