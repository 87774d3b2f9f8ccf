from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from warroom.errors import NotHost, PollNotFound, RoomValidationError
from warroom.models.room import PollVote, Room, RoomPoll
from warroom.services.membership import MembershipManager, required_text

logger = logging.getLogger(__name__)


class PollBook:
    def __init__(self, db: Session, membership: Optional[MembershipManager] = None):
        self.db = db
        self.membership = membership or MembershipManager(db)

    def create(
        self, room: Room, user_id: str, question: str, options: List[str]
    ) -> RoomPoll:
        self.membership.require_member(room, user_id)
        if not self.membership.is_host(room, user_id):
            raise NotHost("Only the host can create polls")
        question = required_text(question, "question", 500)
        choices = [str(option).strip() for option in options or []]
        choices = [option for option in choices if option]
        if len(choices) < 2:
            raise RoomValidationError(["options: a poll needs at least two options"])
        poll = RoomPoll(room_id=room.room_id, question=question, options=choices)
        room.polls.append(poll)
        self.membership.commit_write(room)
        self.db.refresh(poll)
        logger.info("Poll %s created in room %s", poll.id, room.room_id)
        return poll

    def vote(self, room: Room, user_id: str, poll_id: int, option_index: int) -> PollVote:
        """Record the caller's single vote, replacing any earlier choice."""
        self.membership.require_member(room, user_id)
        poll = (
            self.db.query(RoomPoll)
            .filter(RoomPoll.id == poll_id, RoomPoll.room_id == room.room_id)
            .first()
        )
        if poll is None:
            raise PollNotFound()
        if not 0 <= option_index < len(poll.options or []):
            raise RoomValidationError(["option_index: no such option"])

        vote = next((v for v in poll.votes if v.user_id == user_id), None)
        if vote is None:
            vote = PollVote(poll_id=poll.id, user_id=user_id, option_index=option_index)
            poll.votes.append(vote)
        else:
            vote.option_index = option_index
        self.membership.commit_write(room)
        self.db.refresh(vote)
        return vote


def tally(poll: RoomPoll, viewer_id: Optional[str] = None) -> Dict[str, object]:
    options = list(poll.options or [])
    counts = [0] * len(options)
    my_vote = None
    for vote in poll.votes:
        if 0 <= vote.option_index < len(counts):
            counts[vote.option_index] += 1
        if viewer_id and vote.user_id == viewer_id:
            my_vote = vote.option_index
    return {
        "id": poll.id,
        "question": poll.question,
        "options": options,
        "counts": counts,
        "total_votes": sum(counts),
        "my_vote": my_vote,
    }
