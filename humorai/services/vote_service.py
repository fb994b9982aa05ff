from loguru import logger

from humorai.api.vote_api import VoteApi
from humorai.exceptions import VoteMutationFailure
from humorai.session import SessionProvider
from humorai.utils.optimistic import optimistic_update
from humorai.utils.validation import validate_vote_direction


class VoteToggleController:
    """
    One viewer's vote on one caption.

    Votes are applied locally before the data store confirms them and rolled back if it
    refuses. At most one mutation is in flight per controller. The caption's like count is
    never touched here; the data store maintains it.
    """

    def __init__(
        self,
        caption_id: str,
        vote_api: VoteApi,
        session: SessionProvider,
        initial_vote: int | None = None
    ):
        if initial_vote is not None:
            validate_vote_direction(initial_vote)
        self.caption_id = caption_id
        self.vote_api = vote_api
        self.session = session
        self.current_vote: int | None = initial_vote
        self.busy = False
        self.last_error: str | None = None

    async def cast_vote(self, direction: int) -> int | None:
        """
        Vote in `direction`, or retract the vote if it already points that way.

        Ignored while signed out or while another vote on this caption is in flight.
        A rejected write is logged and the previous vote restored.

        :param direction: 1 for upvote, -1 for downvote
        :return: The vote after the operation
        :raises ValidationError: If direction is not 1 or -1
        """
        validate_vote_direction(direction)
        voter_id = self.session.voter_id
        if not voter_id or self.busy:
            return self.current_vote

        self.busy = True
        new_vote = None if self.current_vote == direction else direction
        try:
            async with optimistic_update(self, 'current_vote', new_vote) as previous_vote:
                await self._write(voter_id, previous_vote, new_vote)
            self.last_error = None
        except VoteMutationFailure as e:
            logger.warning(f"Vote failed: {e}")
            self.last_error = str(e)
        finally:
            self.busy = False
        return self.current_vote

    async def _write(self, voter_id: str, previous_vote: int | None, new_vote: int | None) -> None:
        if new_vote is None:
            await self.vote_api.delete_vote(self.caption_id, voter_id)
        elif previous_vote is None:
            await self.vote_api.insert_vote(self.caption_id, voter_id, new_vote)
        else:
            await self.vote_api.update_vote(self.caption_id, voter_id, new_vote)
