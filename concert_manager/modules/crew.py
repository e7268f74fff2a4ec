"""Crew store: staff members, their tasks and shift check-in."""

from typing import List, Optional

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.models import Crew, Task, TaskPriority, TaskStatus, now_iso
from concert_manager.store import EntityStore, contains_ignore_case


class CrewStore(EntityStore[Crew]):
    """Handles crew members and the tasks assigned to them."""

    MAGIC = b"CREW"

    def create_crew_member(self, name: str, email: str, phone_number: str) -> Optional[Crew]:
        crew = Crew(
            crew_id=self.generate_new_id(),
            name=name,
            email=email,
            phone_number=phone_number
        )
        return crew if self.add(crew) else None

    def get_crew_member_by_id(self, crew_id: int) -> Optional[Crew]:
        return self.get_by_id(crew_id)

    def find_crew_members_by_name(self, name_query: str) -> List[Crew]:
        return self.find_by_predicate(lambda c: contains_ignore_case(c.name, name_query))

    def find_crew_member_by_email(self, email: str) -> Optional[Crew]:
        """Exact email match."""
        return self.find_first(lambda c: c.email == email)

    def update_crew_member(self, crew_id: int, name: str = "", email: str = "",
                           phone_number: str = "") -> bool:
        crew = self.get_by_id(crew_id)
        if not crew:
            return False

        if name:
            crew.name = name
        if email:
            crew.email = email
        if phone_number:
            crew.phone_number = phone_number

        return self.save_entities()

    def delete_crew_member(self, crew_id: int) -> bool:
        return self.delete_entity(crew_id)

    def assign_task(self, crew_id: int, task_name: str, description: str,
                    priority: TaskPriority = TaskPriority.MEDIUM) -> Optional[Task]:
        """Give a crew member a new TODO task. Returns the task or None."""
        crew = self.get_by_id(crew_id)
        if not crew:
            return None

        task_id = max((t.task_id for t in crew.tasks), default=0) + 1
        task = Task(task_id, task_name, description, TaskStatus.TODO, priority)
        crew.tasks.append(task)
        self.save_entities()
        return task

    def update_task_status(self, crew_id: int, task_id: int, status: TaskStatus) -> bool:
        crew = self.get_by_id(crew_id)
        if not crew:
            return False

        for task in crew.tasks:
            if task.task_id == task_id:
                task.status = status
                return self.save_entities()
        return False

    def check_in_crew_member(self, crew_id: int) -> bool:
        """Start a shift; any earlier check-out is cleared."""
        crew = self.get_by_id(crew_id)
        if not crew:
            return False
        crew.check_in_time = now_iso()
        crew.check_out_time = None
        return self.save_entities()

    def check_out_crew_member(self, crew_id: int) -> bool:
        crew = self.get_by_id(crew_id)
        if not crew:
            return False
        crew.check_out_time = now_iso()
        return self.save_entities()

    def get_crew_tasks(self, crew_id: int) -> List[Task]:
        crew = self.get_by_id(crew_id)
        return list(crew.tasks) if crew else []

    def get_entity_id(self, entity: Crew) -> int:
        return entity.id

    def write_record(self, writer: BinaryWriter, entity: Crew):
        writer.write_int(entity.id)
        writer.write_string(entity.name)
        writer.write_string(entity.email)
        writer.write_string(entity.phone_number)
        writer.write_optional_string(entity.check_in_time)
        writer.write_optional_string(entity.check_out_time)
        writer.write_list(entity.tasks, _write_task)

    def read_record(self, reader: BinaryReader) -> Crew:
        crew = Crew(
            crew_id=reader.read_int(),
            name=reader.read_string(),
            email=reader.read_string(),
            phone_number=reader.read_string()
        )
        crew.check_in_time = reader.read_optional_string()
        crew.check_out_time = reader.read_optional_string()
        crew.tasks = reader.read_list(_read_task)
        return crew


def _write_task(writer: BinaryWriter, task: Task):
    writer.write_int(task.task_id)
    writer.write_string(task.task_name)
    writer.write_string(task.description)
    writer.write_enum(task.status)
    writer.write_enum(task.priority)


def _read_task(reader: BinaryReader) -> Task:
    return Task(
        task_id=reader.read_int(),
        task_name=reader.read_string(),
        description=reader.read_string(),
        status=reader.read_enum(TaskStatus),
        priority=reader.read_enum(TaskPriority)
    )
