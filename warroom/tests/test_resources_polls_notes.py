import pytest

from warroom.errors import (
    NotAMember,
    NotHost,
    PollNotFound,
    RoleNotPermitted,
    RoomClosed,
    RoomValidationError,
)
from warroom.schemas.room import EndRoomRequest, ParticipantRole
from warroom.services.mentor_notes import MentorNotes, visible_notes
from warroom.services.polls import PollBook, tally
from warroom.services.resource_board import ResourceBoard


@pytest.fixture
def people(make_user):
    return {
        "host": make_user("hana", "Hana", "Host"),
        "mentor": make_user("mia", "Mia", "Mentor"),
        "investor": make_user("ivan", "Ivan", "Investor"),
        "outsider": make_user("olga", "Olga", "Outsider"),
    }


@pytest.fixture
def room(make_room, room_manager, people):
    room = make_room(people["host"].user_id)
    room_manager.membership.join(room, people["mentor"].user_id, ParticipantRole.MENTOR)
    room_manager.membership.join(
        room, people["investor"].user_id, ParticipantRole.INVESTOR
    )
    return room


def test_resources_keep_url_as_given(db_session, room, people):
    board = ResourceBoard(db_session)
    resource = board.add(
        room,
        people["mentor"].user_id,
        "https://example.com/cash-flow-template.xlsx",
        "Cash flow template",
        "spreadsheet",
    )
    assert resource.url == "https://example.com/cash-flow-template.xlsx"
    assert resource.resource_type == "spreadsheet"
    assert [r.title for r in room.resources] == ["Cash flow template"]


def test_resources_are_gated(db_session, room, people, room_manager):
    board = ResourceBoard(db_session)
    with pytest.raises(NotAMember):
        board.add(room, people["outsider"].user_id, "https://example.com")
    room_manager.end_room(room.room_id, people["host"].user_id, EndRoomRequest())
    with pytest.raises(RoomClosed):
        board.add(room, people["mentor"].user_id, "https://example.com")


def test_only_host_creates_polls(db_session, room, people):
    polls = PollBook(db_session)
    with pytest.raises(NotHost):
        polls.create(room, people["mentor"].user_id, "Raise or cut?", ["Raise", "Cut"])
    with pytest.raises(NotAMember):
        polls.create(room, people["outsider"].user_id, "Raise or cut?", ["Raise", "Cut"])


def test_vote_is_single_and_replaceable(db_session, room, people):
    polls = PollBook(db_session)
    poll = polls.create(
        room, people["host"].user_id, "Next step?", ["Bridge round", "Layoffs", "Pivot"]
    )
    polls.vote(room, people["mentor"].user_id, poll.id, 0)
    polls.vote(room, people["investor"].user_id, poll.id, 0)
    polls.vote(room, people["mentor"].user_id, poll.id, 2)

    result = tally(poll, people["mentor"].user_id)
    assert result["counts"] == [1, 0, 1]
    assert result["total_votes"] == 2
    assert result["my_vote"] == 2


def test_vote_validation(db_session, room, people):
    polls = PollBook(db_session)
    poll = polls.create(room, people["host"].user_id, "Yes or no?", ["Yes", "No"])
    with pytest.raises(RoomValidationError):
        polls.vote(room, people["mentor"].user_id, poll.id, 5)
    with pytest.raises(PollNotFound):
        polls.vote(room, people["mentor"].user_id, 999, 0)


def test_only_mentors_and_experts_write_notes(db_session, room, people):
    notes = MentorNotes(db_session)
    note = notes.add(room, people["mentor"].user_id, "Talk to your lead investor first")
    assert note.is_private is False
    with pytest.raises(RoleNotPermitted):
        notes.add(room, people["investor"].user_id, "I am not a mentor")
    with pytest.raises(RoleNotPermitted):
        notes.add(room, people["host"].user_id, "Hosts are not mentors")


def test_private_notes_visible_to_author_and_host(db_session, room, people):
    notes = MentorNotes(db_session)
    notes.add(room, people["mentor"].user_id, "Public advice")
    notes.add(room, people["mentor"].user_id, "Founder seems burned out", is_private=True)

    def texts(viewer):
        return [n.note for n in visible_notes(room, viewer.user_id)]

    assert texts(people["mentor"]) == ["Public advice", "Founder seems burned out"]
    assert texts(people["host"]) == ["Public advice", "Founder seems burned out"]
    assert texts(people["investor"]) == ["Public advice"]


def test_blank_content_is_rejected_by_the_services(db_session, room, people):
    with pytest.raises(RoomValidationError):
        ResourceBoard(db_session).add(room, people["mentor"].user_id, "")
    with pytest.raises(RoomValidationError):
        PollBook(db_session).create(room, people["host"].user_id, "Which?", ["Only", " "])
    with pytest.raises(RoomValidationError):
        MentorNotes(db_session).add(room, people["mentor"].user_id, "  ")
    assert room.resources == []
    assert room.polls == []
    assert room.mentor_notes == []
