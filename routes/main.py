# routes/main.py
# Маршруты участника: шоу, запись, голосование

from flask import Blueprint, request, jsonify, send_from_directory

import logic
import repository
from errors import ValidationError, ShowNotFound
from identity import current_caller, login_required
from routes.auth import request_data
from storage import get_file_store

main_bp = Blueprint('main', __name__)


def int_field(data, name, required=True):
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{name} is required.', code='MISSING_FIELD', details={'field': name})
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{name} must be an integer.', code='BAD_FIELD', details={'field': name})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be an integer.', code='BAD_FIELD', details={'field': name})


@main_bp.route('/shows')
def upcoming_shows():
    shows = repository.list_shows(ending_after=logic.utcnow())
    return jsonify([s.to_dict() for s in shows])


@main_bp.route('/shows/<int:show_id>')
def show_details(show_id):
    show = repository.get_show(show_id)
    if show is None:
        raise ShowNotFound(show_id)
    return jsonify(dict(
        show.to_dict(),
        designers=[d.to_dict() for d in repository.show_designers(show_id)]
    ))


@main_bp.route('/my-shows')
@login_required
def my_shows():
    participant = logic.resolve_participant(current_caller())
    now = logic.utcnow()
    shows = repository.registered_shows(participant.id)
    return jsonify([
        dict(s.to_dict(), is_past=s.end_time < now, has_started=s.start_time <= now)
        for s in shows
    ])


@main_bp.route('/shows/<int:show_id>/register', methods=['POST'])
@login_required
def register_for_show(show_id):
    show = logic.register(current_caller(), show_id)
    return jsonify({'message': 'Successfully registered.', 'show': show.to_dict()}), 201


@main_bp.route('/shows/<int:show_id>/unregister', methods=['POST'])
@login_required
def unregister_from_show(show_id):
    logic.unregister(current_caller(), show_id)
    return jsonify({'message': 'Successfully unregistered.'})


@main_bp.route('/shows/<int:show_id>/registration', methods=['DELETE'])
@login_required
def delete_past_show(show_id):
    logic.remove_past_registration(current_caller(), show_id)
    return jsonify({'message': 'Past show deleted successfully.'})


@main_bp.route('/votes/<int:show_id>')
@login_required
def vote_page(show_id):
    return jsonify(logic.vote_page(current_caller(), show_id))


@main_bp.route('/votes/submit', methods=['POST'])
@login_required
def submit_vote():
    data = request.get_json(silent=True)
    if data is None:
        # Форма: designer_ids приходит несколькими одноимёнными полями
        data = {'show_id': request.form.get('show_id'), 'designer_ids': request.form.getlist('designer_ids')}
    elif not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object.', code='BAD_BODY')

    created = logic.submit_votes(current_caller(), int_field(data, 'show_id'), data.get('designer_ids'))
    return jsonify({'message': 'Your vote has been submitted successfully!', 'created': created})


@main_bp.route('/votes/unvote', methods=['POST'])
@login_required
def unvote():
    data = request_data()
    logic.unvote(current_caller(), int_field(data, 'show_id'), int_field(data, 'designer_id'))
    return jsonify({'message': 'Your vote has been removed successfully!'})


@main_bp.route('/votes/<int:show_id>/<int:designer_id>/image', methods=['POST'])
@login_required
def upload_vote_image(show_id, designer_id):
    upload = request.files.get('image')
    if upload is None or not upload.filename:
        raise ValidationError('Choose an image to upload.', code='EMPTY_UPLOAD')

    ref = logic.attach_vote_image(current_caller(), show_id, designer_id, upload.read(), upload.filename)
    return jsonify({'message': 'Image attached.', 'image_ref': ref}), 201


@main_bp.route('/votes/images/<ref>')
@login_required
def vote_image(ref):
    files = get_file_store()
    # path_for проверяет имя, send_from_directory отдаёт 404 на отсутствующий файл
    files.path_for(ref)
    return send_from_directory(files.root, ref)
