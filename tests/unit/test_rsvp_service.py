"""
Unit tests for RSVP admission through the caller.
Covers capacity checks, duplicate protection, ownership, and the RSVP state machine.
"""
import pytest
from uuid import uuid4

from eventhub.core.exceptions import (
    CapacityExceededError,
    DuplicateRSVPError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    UnauthenticatedError,
)
from eventhub.db.models.rsvp import RSVPStatusEnum
from eventhub.db.repositories import count_attending_rsvps
from eventhub.api.caller import Caller
from eventhub.schemas import DeleteResult, EventCreate, RSVPCreate, RSVPUpdate, SessionUser
from eventhub.services import rsvp_service

ATTENDING = RSVPStatusEnum.attending
DECLINED = RSVPStatusEnum.declined


@pytest.mark.unit
@pytest.mark.asyncio
class TestCreateRSVP:

    async def test_create_attending(self, caller_for, test_user, test_event):
        rsvp = await caller_for(test_user).rsvp.create(RSVPCreate(event_id=test_event.id, status=ATTENDING))

        assert rsvp.status == ATTENDING
        assert rsvp.user_id == test_user.id
        assert rsvp.event_id == test_event.id

    async def test_anonymous_caller_is_rejected(self, caller_for, test_event):
        with pytest.raises(UnauthenticatedError):
            await caller_for().rsvp.create(RSVPCreate(event_id=test_event.id, status=ATTENDING))

    async def test_unknown_event(self, caller_for, test_user):
        with pytest.raises(NotFoundError, match="Event not found"):
            await caller_for(test_user).rsvp.create(RSVPCreate(event_id=str(uuid4()), status=ATTENDING))

    async def test_full_event_rejects_attending(self, db_session, caller_for, test_user, other_user, limited_event):
        event_id = limited_event.id
        await caller_for(test_user).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        with pytest.raises(CapacityExceededError, match="Event is at full capacity") as exc_info:
            await caller_for(other_user).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        assert isinstance(exc_info.value, InvalidRequestError)
        assert exc_info.value.status_code == 400
        assert await count_attending_rsvps(db_session, event_id) == 1

    async def test_full_event_still_accepts_declined(self, caller_for, test_user, other_user, limited_event):
        event_id = limited_event.id
        await caller_for(test_user).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        rsvp = await caller_for(other_user).rsvp.create(RSVPCreate(event_id=event_id, status=DECLINED))

        assert rsvp.status == DECLINED

    async def test_zero_capacity_admits_nobody(self, db_session, caller_for, organizer, test_user):
        event = await caller_for(organizer).events.create(
            EventCreate(name="Closed", location="Nowhere", date="soon", capacity=0)
        )

        with pytest.raises(CapacityExceededError):
            await caller_for(test_user).rsvp.create(RSVPCreate(event_id=event.id, status=ATTENDING))

    async def test_unlimited_event_admits_everyone(self, caller_for, test_user, other_user, organizer, test_event):
        for user in (test_user, other_user, organizer):
            await caller_for(user).rsvp.create(RSVPCreate(event_id=test_event.id, status=ATTENDING))

        rsvps = await caller_for().rsvp.list_by_event(test_event.id)
        assert len(rsvps) == 3

    @pytest.mark.parametrize("second_status", [ATTENDING, DECLINED])
    async def test_second_rsvp_for_same_event_is_duplicate(self, caller_for, test_user, test_event, second_status):
        event_id = test_event.id
        caller = caller_for(test_user)
        await caller.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        with pytest.raises(DuplicateRSVPError, match="You have already RSVPed to this event"):
            await caller.rsvp.create(RSVPCreate(event_id=event_id, status=second_status))

        rsvps = await caller.rsvp.list_by_event(event_id)
        assert len(rsvps) == 1

    async def test_capacity_is_checked_before_duplicate(self, caller_for, test_user, limited_event):
        # The caller's own attending RSVP fills the event
        event_id = limited_event.id
        caller = caller_for(test_user)
        await caller.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        with pytest.raises(CapacityExceededError):
            await caller.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

    async def test_other_events_do_not_count_towards_capacity(
        self, caller_for, test_user, test_event, limited_event
    ):
        limited_id = limited_event.id
        await caller_for(test_user).rsvp.create(RSVPCreate(event_id=test_event.id, status=ATTENDING))

        rsvp = await caller_for(test_user).rsvp.create(RSVPCreate(event_id=limited_id, status=ATTENDING))

        assert rsvp.event_id == limited_id


@pytest.mark.unit
@pytest.mark.asyncio
class TestUpdateRSVP:

    async def test_capacity_one_handover(self, db_session, caller_for, test_user, other_user, limited_event):
        """A takes the only seat, B is turned away, A declines, B gets in."""
        event_id = limited_event.id
        alice, bob = caller_for(test_user), caller_for(other_user)

        alice_rsvp = await alice.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))
        alice_rsvp_id = alice_rsvp.id

        with pytest.raises(CapacityExceededError):
            await bob.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        updated = await alice.rsvp.update(alice_rsvp_id, RSVPUpdate(status=DECLINED))
        assert updated.status == DECLINED

        bob_rsvp = await bob.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))
        assert bob_rsvp.status == ATTENDING
        assert await count_attending_rsvps(db_session, event_id) == 1

    async def test_moving_into_attending_rechecks_capacity(self, caller_for, test_user, other_user, limited_event):
        event_id = limited_event.id
        bob_rsvp = await caller_for(other_user).rsvp.create(RSVPCreate(event_id=event_id, status=DECLINED))
        bob_rsvp_id = bob_rsvp.id
        await caller_for(test_user).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        with pytest.raises(CapacityExceededError):
            await caller_for(other_user).rsvp.update(bob_rsvp_id, RSVPUpdate(status=ATTENDING))

    async def test_attending_to_attending_skips_capacity_check(self, caller_for, test_user, limited_event):
        caller = caller_for(test_user)
        rsvp = await caller.rsvp.create(RSVPCreate(event_id=limited_event.id, status=ATTENDING))

        updated = await caller.rsvp.update(rsvp.id, RSVPUpdate(status=ATTENDING))

        assert updated.status == ATTENDING

    async def test_update_without_status_only_touches_timestamp(self, caller_for, test_user, test_rsvp):
        before = test_rsvp.updated_at

        updated = await caller_for(test_user).rsvp.update(test_rsvp.id, RSVPUpdate())

        assert updated.status == ATTENDING
        assert updated.updated_at >= before

    async def test_update_someone_elses_rsvp_is_forbidden(self, caller_for, other_user, test_rsvp):
        rsvp_id, event_id = test_rsvp.id, test_rsvp.event_id

        with pytest.raises(ForbiddenError, match="You can only update your own RSVPs"):
            await caller_for(other_user).rsvp.update(rsvp_id, RSVPUpdate(status=DECLINED))

        rsvp = (await caller_for().rsvp.list_by_event(event_id))[0]
        assert rsvp.status == ATTENDING

    async def test_update_missing_rsvp(self, caller_for, test_user):
        with pytest.raises(NotFoundError, match="RSVP not found"):
            await caller_for(test_user).rsvp.update(str(uuid4()), RSVPUpdate(status=DECLINED))

    async def test_update_requires_user(self, caller_for, test_rsvp):
        with pytest.raises(UnauthenticatedError):
            await caller_for().rsvp.update(test_rsvp.id, RSVPUpdate(status=DECLINED))


@pytest.mark.unit
@pytest.mark.asyncio
class TestDeleteRSVP:

    async def test_delete_own_rsvp(self, caller_for, test_user, test_event, test_rsvp):
        event_id = test_event.id

        result = await caller_for(test_user).rsvp.delete(test_rsvp.id)

        assert result == DeleteResult(success=True)
        assert await caller_for().rsvp.list_by_event(event_id) == []

    async def test_delete_frees_a_seat(self, caller_for, test_user, other_user, limited_event):
        event_id = limited_event.id
        alice = caller_for(test_user)
        rsvp = await alice.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        await alice.rsvp.delete(rsvp.id)
        bob_rsvp = await caller_for(other_user).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        assert bob_rsvp.status == ATTENDING

    async def test_delete_then_rsvp_again(self, caller_for, test_user, test_event):
        event_id = test_event.id
        caller = caller_for(test_user)
        rsvp = await caller.rsvp.create(RSVPCreate(event_id=event_id, status=DECLINED))

        await caller.rsvp.delete(rsvp.id)
        again = await caller.rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))

        assert again.id != rsvp.id

    async def test_delete_someone_elses_rsvp_is_forbidden(self, caller_for, other_user, test_rsvp):
        rsvp_id, event_id = test_rsvp.id, test_rsvp.event_id

        with pytest.raises(ForbiddenError, match="You can only delete your own RSVPs"):
            await caller_for(other_user).rsvp.delete(rsvp_id)

        assert len(await caller_for().rsvp.list_by_event(event_id)) == 1

    async def test_delete_missing_rsvp(self, caller_for, test_user):
        with pytest.raises(NotFoundError, match="RSVP not found"):
            await caller_for(test_user).rsvp.delete(str(uuid4()))


@pytest.mark.unit
@pytest.mark.asyncio
class TestListRSVPs:

    async def test_list_mine_includes_event(self, caller_for, test_user, test_event, test_rsvp):
        rsvps = await caller_for(test_user).rsvp.list_mine()

        assert [r.id for r in rsvps] == [test_rsvp.id]
        assert rsvps[0].event.name == test_event.name

    async def test_list_mine_requires_user(self, caller_for):
        with pytest.raises(UnauthenticatedError):
            await caller_for().rsvp.list_mine()

    async def test_list_by_event_is_public(self, caller_for, test_user, test_event, test_rsvp):
        rsvps = await caller_for().rsvp.list_by_event(test_event.id)

        assert rsvps[0].user.name == test_user.name


@pytest.mark.unit
@pytest.mark.asyncio
class TestUpdateRSVPInterleaving:

    async def test_stale_attending_read_cannot_overfill_event(
        self, monkeypatch, session_factory, test_user, other_user, limited_event
    ):
        """
        Alice re-submits 'attending'. Between reading her RSVP and writing it,
        she declines in another request and Bob takes the freed seat.
        """
        event_id = limited_event.id
        alice, bob = SessionUser.model_validate(test_user), SessionUser.model_validate(other_user)

        async with session_factory() as session:
            rsvp = await Caller(session, alice).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))
            rsvp_id = rsvp.id

        real_get_rsvp = rsvp_service.db_get_rsvp
        interleaved = []

        async def get_rsvp_then_interleave(db, wanted_id, **kwargs):
            found = await real_get_rsvp(db, wanted_id, **kwargs)
            if not interleaved:
                interleaved.append(wanted_id)
                async with session_factory() as session:
                    await Caller(session, alice).rsvp.update(rsvp_id, RSVPUpdate(status=DECLINED))
                async with session_factory() as session:
                    await Caller(session, bob).rsvp.create(RSVPCreate(event_id=event_id, status=ATTENDING))
            return found

        monkeypatch.setattr(rsvp_service, "db_get_rsvp", get_rsvp_then_interleave)

        async with session_factory() as session:
            with pytest.raises(CapacityExceededError):
                await Caller(session, alice).rsvp.update(rsvp_id, RSVPUpdate(status=ATTENDING))

        assert interleaved == [rsvp_id]
        async with session_factory() as session:
            assert await count_attending_rsvps(session, event_id) == 1
            statuses = {r.user_id: r.status for r in await Caller(session).rsvp.list_by_event(event_id)}
        assert statuses == {alice.id: DECLINED, bob.id: ATTENDING}


@pytest.mark.unit
@pytest.mark.asyncio
class TestRSVPEventScope:

    async def test_update_through_wrong_event_is_not_found(self, caller_for, test_user, test_rsvp, limited_event):
        rsvp_id, other_event_id = test_rsvp.id, limited_event.id
        caller = caller_for(test_user)

        with pytest.raises(NotFoundError, match="RSVP not found"):
            await caller.rsvp.update(rsvp_id, RSVPUpdate(status=DECLINED), event_id=other_event_id)

        rsvp = (await caller.rsvp.list_mine())[0]
        assert rsvp.status == ATTENDING

    async def test_delete_through_wrong_event_is_not_found(self, caller_for, test_user, test_rsvp, limited_event):
        rsvp_id, other_event_id = test_rsvp.id, limited_event.id
        caller = caller_for(test_user)

        with pytest.raises(NotFoundError, match="RSVP not found"):
            await caller.rsvp.delete(rsvp_id, event_id=other_event_id)

        assert len(await caller.rsvp.list_mine()) == 1

    async def test_update_through_own_event(self, caller_for, test_user, test_event, test_rsvp):
        updated = await caller_for(test_user).rsvp.update(
            test_rsvp.id, RSVPUpdate(status=DECLINED), event_id=test_event.id
        )

        assert updated.status == DECLINED
