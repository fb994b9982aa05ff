from datetime import datetime, timezone

from pydantic import ValidationError as PydanticValidationError

from humorai.api.base_api import BaseApi
from humorai.exceptions import APIError, NetworkError, VoteMutationFailure
from humorai.models.caption import Vote
from humorai.utils.validation import validate_id, validate_vote_direction

VOTES_TABLE = '/caption_votes'
RETURN_MINIMAL = {'Prefer': 'return=minimal'}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _vote_filter(caption_id: str, voter_id: str) -> dict[str, str]:
    return {'caption_id': f'eq.{caption_id}', 'profile_id': f'eq.{voter_id}'}


class VoteApi(BaseApi):
    """
    Vote records in the data store, keyed by (caption, voter).

    Writes raise VoteMutationFailure on any remote error.
    """

    async def get_votes_for_captions(self, voter_id: str, caption_ids: list[str]) -> dict[str, int]:
        """
        Gets the voter's current votes for a set of captions.

        :param voter_id: Voter (profile) ID
        :param caption_ids: Captions to look up
        :return: Mapping of caption ID to vote value; captions without a vote are absent
        """
        if not caption_ids:
            return {}
        json_response = await self._client.get(
            VOTES_TABLE,
            query_params={
                'select': 'caption_id,profile_id,vote_value',
                'profile_id': f'eq.{voter_id}',
                'caption_id': f"in.({','.join(caption_ids)})",
            }
        )
        try:
            votes = [Vote(**row) for row in json_response or []]
        except PydanticValidationError as e:
            raise APIError(f"Unexpected vote rows: {json_response!r}", body=str(json_response)) from e
        return {vote.caption_id: vote.vote_value for vote in votes}

    async def insert_vote(self, caption_id: str, voter_id: str, vote_value: int) -> None:
        validate_id(caption_id, "caption_id")
        validate_id(voter_id, "voter_id")
        validate_vote_direction(vote_value)
        now = _utc_now_iso()
        try:
            await self._client.post(
                VOTES_TABLE,
                data={
                    'vote_value': vote_value,
                    'profile_id': voter_id,
                    'caption_id': caption_id,
                    'created_datetime_utc': now,
                    'modified_datetime_utc': now,
                },
                headers=RETURN_MINIMAL
            )
        except (APIError, NetworkError) as e:
            raise VoteMutationFailure(f"Insert vote on {caption_id} failed: {e}") from e

    async def update_vote(self, caption_id: str, voter_id: str, vote_value: int) -> None:
        validate_id(caption_id, "caption_id")
        validate_id(voter_id, "voter_id")
        validate_vote_direction(vote_value)
        try:
            await self._client.patch(
                VOTES_TABLE,
                data={'vote_value': vote_value, 'modified_datetime_utc': _utc_now_iso()},
                query_params=_vote_filter(caption_id, voter_id),
                headers=RETURN_MINIMAL
            )
        except (APIError, NetworkError) as e:
            raise VoteMutationFailure(f"Update vote on {caption_id} failed: {e}") from e

    async def delete_vote(self, caption_id: str, voter_id: str) -> None:
        validate_id(caption_id, "caption_id")
        validate_id(voter_id, "voter_id")
        try:
            await self._client.delete(
                VOTES_TABLE,
                query_params=_vote_filter(caption_id, voter_id),
                headers=RETURN_MINIMAL
            )
        except (APIError, NetworkError) as e:
            raise VoteMutationFailure(f"Delete vote on {caption_id} failed: {e}") from e
