# routes/admin.py

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError

import logic
import repository
from errors import (
    ValidationError, ShowNotFound, DesignerNotFound, ParticipantNotFound,
    DesignerAlreadyAssigned, DuplicateEmail, NotFoundError,
)
from extensions import db
from identity import admin_required, current_caller
from models import Participant, Designer, Show, DesignerAssignment, Vote
from routes.auth import request_data
from routes.main import int_field
from notifications import publish_vote_updated
from storage import release_images

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def text_field(data, name, required=True):
    value = (data.get(name) or '').strip()
    if required and not value:
        raise ValidationError(f'{name} is required.', code='MISSING_FIELD', details={'field': name})
    return value


def parse_datetime(value, name):
    if not value:
        raise ValidationError(f'{name} is required.', code='MISSING_FIELD', details={'field': name})
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f'{name} must be an ISO date and time, e.g. 2025-02-10T18:00.',
            code='BAD_FIELD', details={'field': name}
        )
    # В базе всё хранится в UTC без tzinfo
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def show_times(data):
    start_time = parse_datetime(data.get('start_time'), 'start_time')
    end_time = parse_datetime(data.get('end_time'), 'end_time')
    if start_time >= end_time:
        raise ValidationError('The show must start before it ends.', code='BAD_INTERVAL')
    return start_time, end_time


# --- БЛОК CRUD для Participant ---
@admin_bp.route('/participants', methods=['GET'])
@admin_required
def list_participants():
    return jsonify([p.to_dict() for p in repository.list_participants()])


@admin_bp.route('/participants', methods=['POST'])
@admin_required
def create_participant():
    data = request_data()
    name = text_field(data, 'name')
    email = text_field(data, 'email').lower()

    participant = Participant(name=name, email=email)
    db.session.add(participant)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateEmail(email)

    logger.info("Participant %s created by admin", participant.id)
    return jsonify(repository.get_participant(participant.id).to_dict()), 201


@admin_bp.route('/participants/<int:participant_id>', methods=['GET'])
@admin_required
def participant_details(participant_id):
    participant = repository.get_participant(participant_id)
    if participant is None:
        raise ParticipantNotFound(participant_id)
    return jsonify(dict(
        participant.to_dict(),
        shows=[s.to_dict() for s in repository.registered_shows(participant_id)]
    ))


@admin_bp.route('/participants/<int:participant_id>', methods=['PUT'])
@admin_required
def edit_participant(participant_id):
    participant = db.session.get(Participant, participant_id)
    if participant is None:
        raise ParticipantNotFound(participant_id)

    data = request_data()
    participant.name = text_field(data, 'name')
    participant.email = text_field(data, 'email').lower()
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateEmail(data.get('email'))
    return jsonify(repository.get_participant(participant_id).to_dict())


@admin_bp.route('/participants/<int:participant_id>', methods=['DELETE'])
@admin_required
def delete_participant(participant_id):
    participant = db.session.get(Participant, participant_id)
    if participant is None:
        raise ParticipantNotFound(participant_id)

    # Записи и голоса удалит каскад в базе, картинки - мы, после commit
    image_refs = repository.image_refs_for(participant_id=participant_id)
    db.session.delete(participant)
    db.session.commit()
    release_images(image_refs)

    logger.info("Participant %s deleted", participant_id)
    return jsonify({'message': 'Participant deleted successfully!'})


# --- БЛОК CRUD для Designer ---
@admin_bp.route('/designers', methods=['GET'])
@admin_required
def list_designers():
    return jsonify([d.to_dict() for d in repository.list_designers()])


@admin_bp.route('/designers', methods=['POST'])
@admin_required
def create_designer():
    data = request_data()
    designer = Designer(name=text_field(data, 'name'), category=text_field(data, 'category'))
    db.session.add(designer)
    db.session.commit()
    logger.info("Designer %s created", designer.id)
    return jsonify(repository.get_designer(designer.id).to_dict()), 201


@admin_bp.route('/designers/<int:designer_id>', methods=['GET'])
@admin_required
def designer_details(designer_id):
    designer = repository.get_designer(designer_id)
    if designer is None:
        raise DesignerNotFound(designer_id)
    return jsonify(designer.to_dict())


@admin_bp.route('/designers/<int:designer_id>', methods=['PUT'])
@admin_required
def edit_designer(designer_id):
    designer = db.session.get(Designer, designer_id)
    if designer is None:
        raise DesignerNotFound(designer_id)

    data = request_data()
    designer.name = text_field(data, 'name')
    designer.category = text_field(data, 'category')
    db.session.commit()
    return jsonify(repository.get_designer(designer_id).to_dict())


@admin_bp.route('/designers/<int:designer_id>', methods=['DELETE'])
@admin_required
def delete_designer(designer_id):
    designer = db.session.get(Designer, designer_id)
    if designer is None:
        raise DesignerNotFound(designer_id)

    image_refs = repository.image_refs_for(designer_id=designer_id)
    db.session.delete(designer)
    db.session.commit()
    release_images(image_refs)

    logger.info("Designer %s deleted", designer_id)
    return jsonify({'message': 'Designer deleted successfully!'})


# --- БЛОК CRUD для Show ---
@admin_bp.route('/shows', methods=['GET'])
@admin_required
def list_shows():
    counts = repository.show_counts()
    result = []
    for show in repository.list_shows():
        designers, participants, votes = counts.get(show.id, (0, 0, 0))
        result.append(dict(show.to_dict(), designer_count=designers, participant_count=participants, vote_count=votes))
    return jsonify(result)


@admin_bp.route('/shows', methods=['POST'])
@admin_required
def create_show():
    data = request_data()
    start_time, end_time = show_times(data)
    show = Show(
        name=text_field(data, 'name'),
        location=text_field(data, 'location', required=False),
        start_time=start_time,
        end_time=end_time
    )
    db.session.add(show)
    db.session.commit()
    logger.info("Show %s created (%s - %s)", show.id, start_time, end_time)
    return jsonify(repository.get_show(show.id).to_dict()), 201


@admin_bp.route('/shows/<int:show_id>', methods=['GET'])
@admin_required
def show_details(show_id):
    show = repository.get_show(show_id)
    if show is None:
        raise ShowNotFound(show_id)
    return jsonify(dict(
        show.to_dict(),
        designers=[d.to_dict() for d in repository.show_designers(show_id)],
        participants=[p.to_dict() for p in repository.show_participants(show_id)]
    ))


@admin_bp.route('/shows/<int:show_id>', methods=['PUT'])
@admin_required
def edit_show(show_id):
    show = db.session.get(Show, show_id)
    if show is None:
        raise ShowNotFound(show_id)

    data = request_data()
    show.start_time, show.end_time = show_times(data)
    show.name = text_field(data, 'name')
    show.location = text_field(data, 'location', required=False)
    db.session.commit()
    return jsonify({'message': 'Show updated successfully.', 'show': repository.get_show(show_id).to_dict()})


@admin_bp.route('/shows/<int:show_id>', methods=['DELETE'])
@admin_required
def delete_show(show_id):
    show = db.session.get(Show, show_id)
    if show is None:
        raise ShowNotFound(show_id)

    image_refs = repository.image_refs_for(show_id=show_id)
    db.session.delete(show)
    db.session.commit()
    release_images(image_refs)

    logger.info("Show %s deleted", show_id)
    return jsonify({'message': 'Show deleted successfully!'})


@admin_bp.route('/shows/<int:show_id>/participants', methods=['GET'])
@admin_required
def show_participants(show_id):
    if repository.get_show(show_id) is None:
        raise ShowNotFound(show_id)
    return jsonify([p.to_dict() for p in repository.show_participants(show_id)])


# --- Назначение дизайнеров на шоу ---
@admin_bp.route('/shows/<int:show_id>/designers', methods=['GET'])
@admin_required
def show_designers(show_id):
    if repository.get_show(show_id) is None:
        raise ShowNotFound(show_id)
    return jsonify([d.to_dict() for d in repository.show_designers(show_id)])


@admin_bp.route('/shows/<int:show_id>/designers', methods=['POST'])
@admin_required
def assign_designer(show_id):
    designer_id = int_field(request_data(), 'designer_id')
    if repository.get_show(show_id) is None:
        raise ShowNotFound(show_id)
    if repository.get_designer(designer_id) is None:
        raise DesignerNotFound(designer_id)

    db.session.add(DesignerAssignment(designer_id=designer_id, show_id=show_id))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DesignerAlreadyAssigned(designer_id, show_id)

    logger.info("Designer %s assigned to show %s", designer_id, show_id)
    return jsonify({'message': 'Designer assigned to the show!'}), 201


@admin_bp.route('/shows/<int:show_id>/designers/<int:designer_id>', methods=['DELETE'])
@admin_required
def remove_designer(show_id, designer_id):
    assignment = DesignerAssignment.query.filter_by(show_id=show_id, designer_id=designer_id).first()
    if assignment is None:
        raise NotFoundError(
            'Designer is not assigned to this show.', code='ASSIGNMENT_NOT_FOUND',
            details={'show_id': show_id, 'designer_id': designer_id}
        )
    # Голоса за дизайнера в этом шоу уходят вместе с назначением, картинки - после commit
    image_refs = repository.image_refs_for(designer_id=designer_id, show_id=show_id)
    removed_votes = Vote.query.filter_by(designer_id=designer_id, show_id=show_id).delete(synchronize_session=False)
    db.session.delete(assignment)
    db.session.commit()
    release_images(image_refs)

    logger.info("Designer %s removed from show %s with %d votes", designer_id, show_id, removed_votes)
    if removed_votes:
        publish_vote_updated(show_id)
    return jsonify({'message': 'Designer removed from the show.', 'removed_votes': removed_votes})


# --- Голоса ---
@admin_bp.route('/votes', methods=['GET'])
@admin_required
def list_votes():
    return jsonify([v.to_dict() for v in repository.list_votes()])


@admin_bp.route('/shows/<int:show_id>/votes', methods=['GET'])
@admin_required
def show_votes(show_id):
    return jsonify(logic.tally_show(current_caller(), show_id).to_dict())
