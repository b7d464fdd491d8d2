"""Tests for recording and removing votes."""

import os

import pytest
from sqlalchemy.exc import IntegrityError

import logic
import repository
from conftest import add_vote, caller_for
from errors import (
    ConflictError, NoSelection, NotRegistered, ShowNotFound, ValidationError,
    VoteImageExists, VoteNotFound,
)
from models import Vote
from notifications import VOTE_UPDATED


@pytest.fixture
def runway(make_show, make_designer, make_participant):
    show = make_show('Runway')
    designers = [make_designer(f'D{i}', shows=[show]) for i in range(1, 4)]
    participant = make_participant(shows=[show])
    return show, designers, participant


class TestSubmitVotes:
    def test_duplicates_in_one_call(self, runway):
        show, (d1, d2, d3), participant = runway

        created = logic.submit_votes(caller_for(participant), show.id, [d2.id, d2.id, d3.id])

        assert created == 2
        assert repository.voted_designer_ids(participant.id, show.id) == {d2.id, d3.id}
        assert Vote.query.count() == 2

    def test_resubmission_is_a_no_op(self, runway):
        show, (d1, d2, d3), participant = runway
        caller = caller_for(participant)

        assert logic.submit_votes(caller, show.id, [d1.id]) == 1
        assert logic.submit_votes(caller, show.id, [d1.id]) == 0
        assert Vote.query.filter_by(participant_id=participant.id, designer_id=d1.id).count() == 1

    def test_partial_resubmission_only_adds_new(self, runway):
        show, (d1, d2, d3), participant = runway
        caller = caller_for(participant)
        logic.submit_votes(caller, show.id, [d1.id])

        assert logic.submit_votes(caller, show.id, [d3.id, d1.id]) == 1
        assert Vote.query.count() == 2

    def test_ids_as_strings(self, runway):
        show, (d1, d2, d3), participant = runway
        assert logic.submit_votes(caller_for(participant), show.id, [str(d1.id), str(d2.id)]) == 2

    def test_publishes_update(self, runway, channel):
        show, (d1, d2, d3), participant = runway
        logic.submit_votes(caller_for(participant), show.id, [d1.id])
        assert channel.events == [(VOTE_UPDATED, {'show_id': show.id})]

    def test_empty_selection(self, runway):
        show, designers, participant = runway
        with pytest.raises(NoSelection):
            logic.submit_votes(caller_for(participant), show.id, [])
        with pytest.raises(NoSelection):
            logic.submit_votes(caller_for(participant), show.id, None)

    def test_bad_ids(self, runway):
        show, designers, participant = runway
        with pytest.raises(ValidationError):
            logic.submit_votes(caller_for(participant), show.id, ['abc'])

    @pytest.mark.parametrize('designer_ids', [1, '1', {'1': 1}, [1.7], [True]])
    def test_selection_must_be_a_list_of_ids(self, runway, designer_ids):
        show, designers, participant = runway
        with pytest.raises(ValidationError) as exc:
            logic.submit_votes(caller_for(participant), show.id, designer_ids)
        assert exc.value.code == 'BAD_DESIGNER_IDS'
        assert Vote.query.count() == 0

    def test_not_registered(self, runway, make_participant):
        show, (d1, d2, d3), _ = runway
        outsider = make_participant()
        with pytest.raises(NotRegistered):
            logic.submit_votes(caller_for(outsider), show.id, [d1.id])
        assert Vote.query.count() == 0

    def test_missing_show(self, runway):
        _, (d1, d2, d3), participant = runway
        with pytest.raises(ShowNotFound):
            logic.submit_votes(caller_for(participant), 404, [d1.id])
        with pytest.raises(ValidationError):
            logic.submit_votes(caller_for(participant), None, [d1.id])

    def test_designer_not_in_show(self, runway, make_designer):
        show, (d1, d2, d3), participant = runway
        stranger = make_designer('Stranger')
        with pytest.raises(ValidationError) as exc:
            logic.submit_votes(caller_for(participant), show.id, [d1.id, stranger.id])
        assert exc.value.details['designer_ids'] == [stranger.id]
        assert Vote.query.count() == 0

    def test_show_without_designers(self, make_show, make_participant):
        show = make_show()
        participant = make_participant(shows=[show])
        with pytest.raises(ValidationError) as exc:
            logic.submit_votes(caller_for(participant), show.id, [1])
        assert exc.value.code == 'NO_DESIGNERS'

    def test_concurrent_duplicate_is_treated_as_already_voted(self, runway, monkeypatch):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)

        real_find_vote = repository.find_vote
        calls = {'n': 0}

        def stale_find_vote(*args):
            # Первая проверка не видит голос, записанный параллельным запросом
            calls['n'] += 1
            if calls['n'] == 1:
                return None
            return real_find_vote(*args)

        monkeypatch.setattr(repository, 'find_vote', stale_find_vote)

        assert logic.submit_votes(caller_for(participant), show.id, [d1.id]) == 0
        assert Vote.query.count() == 1

    def test_persistent_uniqueness_failure(self, runway, monkeypatch):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)
        monkeypatch.setattr(repository, 'find_vote', lambda *args: None)

        with pytest.raises(ConflictError) as exc:
            logic.submit_votes(caller_for(participant), show.id, [d1.id])
        assert exc.value.code == 'ALREADY_VOTED'
        assert Vote.query.count() == 1

    def test_designer_removed_mid_submission(self, runway, monkeypatch):
        show, (d1, d2, d3), participant = runway
        real_show_designers = repository.show_designers
        calls = {'n': 0}

        def shrinking_show_designers(show_id):
            # После первой проверки d1 снимают с шоу
            calls['n'] += 1
            designers = real_show_designers(show_id)
            if calls['n'] == 1:
                return designers
            return [d for d in designers if d.id != d1.id]

        def failing_insert(*args):
            raise IntegrityError('INSERT INTO votes', {}, Exception('FOREIGN KEY constraint failed'))

        monkeypatch.setattr(repository, 'show_designers', shrinking_show_designers)
        monkeypatch.setattr(logic, '_insert_missing_votes', failing_insert)

        with pytest.raises(ValidationError) as exc:
            logic.submit_votes(caller_for(participant), show.id, [d1.id, d2.id])
        assert exc.value.code == 'UNKNOWN_DESIGNERS'
        assert exc.value.details['designer_ids'] == [d1.id]
        assert Vote.query.count() == 0


class TestUnvote:
    def test_removes_vote(self, runway, channel):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)

        logic.unvote(caller_for(participant), show.id, d1.id)

        assert Vote.query.count() == 0
        assert channel.events == [(VOTE_UPDATED, {'show_id': show.id})]

    def test_missing_vote_leaves_state_alone(self, runway):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)

        with pytest.raises(VoteNotFound):
            logic.unvote(caller_for(participant), show.id, d2.id)
        assert Vote.query.count() == 1

    def test_releases_attached_image(self, runway, files):
        show, (d1, d2, d3), participant = runway
        ref = files.store(b'fake-png', 'look.png')
        add_vote(participant, d1, show, image_ref=ref)

        logic.unvote(caller_for(participant), show.id, d1.id)

        assert not os.path.exists(files.path_for(ref))

    def test_image_release_failure_does_not_block(self, runway):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show, image_ref='already-gone.png')

        logic.unvote(caller_for(participant), show.id, d1.id)

        assert Vote.query.count() == 0

    def test_other_participants_vote_is_untouched(self, runway, make_participant):
        show, (d1, d2, d3), participant = runway
        other = make_participant(shows=[show])
        add_vote(other, d1, show)

        with pytest.raises(VoteNotFound):
            logic.unvote(caller_for(participant), show.id, d1.id)
        assert Vote.query.count() == 1


class TestAttachVoteImage:
    def test_attach(self, runway, files):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)

        ref = logic.attach_vote_image(caller_for(participant), show.id, d1.id, b'img', 'look.jpg')

        assert ref.endswith('.jpg')
        assert repository.find_vote(participant.id, d1.id, show.id).image_ref == ref
        with open(files.path_for(ref), 'rb') as fh:
            assert fh.read() == b'img'

    def test_second_image_is_rejected(self, runway, files):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)
        caller = caller_for(participant)
        ref = logic.attach_vote_image(caller, show.id, d1.id, b'img', 'look.png')

        with pytest.raises(VoteImageExists):
            logic.attach_vote_image(caller, show.id, d1.id, b'other', 'other.png')
        # Первая картинка живёт, пока жив голос
        assert os.path.exists(files.path_for(ref))

    def test_without_vote(self, runway):
        show, (d1, d2, d3), participant = runway
        with pytest.raises(VoteNotFound):
            logic.attach_vote_image(caller_for(participant), show.id, d1.id, b'img', 'look.png')

    def test_disallowed_extension(self, runway):
        show, (d1, d2, d3), participant = runway
        add_vote(participant, d1, show)
        with pytest.raises(ValidationError):
            logic.attach_vote_image(caller_for(participant), show.id, d1.id, b'img', 'script.exe')
        assert repository.find_vote(participant.id, d1.id, show.id).image_ref is None
