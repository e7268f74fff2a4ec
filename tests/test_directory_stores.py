"""Crew, attendee and communication stores."""

import pytest

from concert_manager.models import AttendeeType, TaskPriority, TaskStatus
from concert_manager.modules.attendees import AttendeeStore
from concert_manager.modules.communications import CommunicationStore
from concert_manager.modules.crew import CrewStore


@pytest.fixture
def crew(tmp_path):
    return CrewStore(str(tmp_path / "crew.dat"))


@pytest.fixture
def attendees(tmp_path):
    return AttendeeStore(str(tmp_path / "attendees.dat"))


@pytest.fixture
def communications(tmp_path):
    return CommunicationStore(str(tmp_path / "communications.dat"))


def test_crew_tasks(crew):
    member = crew.create_crew_member("Sam Stage", "sam@example.com", "5550001111")

    first = crew.assign_task(member.id, "Rig lights", "Front truss", TaskPriority.HIGH)
    second = crew.assign_task(member.id, "Sound check", "")
    assert (first.task_id, second.task_id) == (1, 2)
    assert second.status == TaskStatus.TODO
    assert second.priority == TaskPriority.MEDIUM

    assert crew.update_task_status(member.id, 1, TaskStatus.COMPLETED)
    assert crew.update_task_status(member.id, 7, TaskStatus.COMPLETED) is False
    assert crew.assign_task(99, "Nothing", "") is None


def test_crew_shift_and_reload(crew):
    member = crew.create_crew_member("Sam Stage", "sam@example.com", "5550001111")
    crew.assign_task(member.id, "Rig lights", "Front truss")
    assert crew.check_in_crew_member(member.id)
    assert member.check_in_time and member.check_out_time is None
    assert crew.check_out_crew_member(member.id)

    loaded = CrewStore(crew.file_path).get_crew_member_by_id(member.id)
    assert loaded.to_dict() == member.to_dict()


def test_crew_lookup_and_update(crew):
    member = crew.create_crew_member("Sam Stage", "sam@example.com", "5550001111")

    assert crew.find_crew_members_by_name("stage") == [member]
    assert crew.find_crew_member_by_email("sam@example.com") is member
    assert crew.update_crew_member(member.id, name="Samantha Stage")
    assert member.email == "sam@example.com"
    assert crew.delete_crew_member(member.id)
    assert crew.get_crew_member_by_id(member.id) is None


def test_attendee_lookups(attendees):
    jane = attendees.create_attendee("Jane Doe", "jane@example.com", "5551234567",
                                     AttendeeType.VIP, username="jane")

    assert attendees.find_attendee_by_email("JANE@example.com") is jane
    assert attendees.find_attendee_by_username("jane") is jane
    assert attendees.find_attendee_by_username("JANE") is None
    assert attendees.find_attendees_by_name("doe") == [jane]


def test_attendee_update_and_presence(attendees):
    jane = attendees.create_attendee("Jane Doe", "jane@example.com", "5551234567")

    assert attendees.update_attendee(jane.id, phone_number="5559999999",
                                     attendee_type=AttendeeType.VIP)
    assert jane.name == "Jane Doe"
    assert jane.attendee_type == AttendeeType.VIP
    assert attendees.check_in_attendee(jane.id)
    assert attendees.check_out_attendee(jane.id)

    loaded = AttendeeStore(attendees.file_path).get_attendee_by_id(jane.id)
    assert loaded.to_dict() == jane.to_dict()
    assert attendees.delete_attendee(jane.id)


def test_communication_log(communications):
    first = communications.send_communication(1, "Doors open at 7", "SMS", recipient_count=40)
    communications.send_communication(2, "Set times posted")
    communications.send_communication(1, "Concert cancelled", is_automated=True)

    assert first.comm_id == 1
    assert [log.comm_id for log in communications.get_logs_for_concert(1)] == [1, 3]
    assert [log.comm_id for log in communications.find_logs_by_type("sms")] == [1]
    assert len(communications.get_logs_by_date_range("2000-01-01T00:00:00Z",
                                                     "2999-01-01T00:00:00Z")) == 3

    loaded = CommunicationStore(communications.file_path)
    assert loaded.get_communication_by_id(3).is_automated
    assert loaded.get_communication_by_id(1).to_dict() == first.to_dict()
    assert communications.delete_communication(2)
    assert communications.get_communication_by_id(2) is None
