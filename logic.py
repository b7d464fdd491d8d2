import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError

import repository
from errors import (
    ValidationError, ConflictError, NoSelection, NotAParticipant, NotRegistered,
    ShowNotFound, VoteNotFound, RegistrationNotFound, AlreadyRegistered,
    SchedulingConflict, ShowAlreadyStarted, ShowNotFinished, VoteImageExists,
)
from extensions import db
from identity import ADMIN, PARTICIPANT, require_role
from models import Registration, Vote
from notifications import publish_vote_updated
from storage import get_file_store, release_images

logger = logging.getLogger(__name__)


def utcnow():
    return datetime.utcnow()


def shows_overlap(a, b):
    """Полуоткрытые интервалы [start, end): касание концами пересечением не считается."""
    return a.start_time < b.end_time and a.end_time > b.start_time


def check_registration(show_id, target_show, existing_shows):
    """
    Проверяет, можно ли записаться на шоу. Ничего не пишет в базу,
    при отказе бросает ошибку с конкретной причиной.
    """
    if target_show is None:
        raise ShowNotFound(show_id)

    # 1. Повторная запись
    if any(s.id == target_show.id for s in existing_shows):
        raise AlreadyRegistered(target_show.id)

    # 2. Пересечение по времени с уже выбранными шоу
    for existing in existing_shows:
        if shows_overlap(existing, target_show):
            raise SchedulingConflict(target_show.id, existing)


def resolve_participant(caller):
    require_role(caller, PARTICIPANT)
    participant = repository.get_participant_by_email(caller.email)
    if participant is None:
        raise NotAParticipant(caller.email)
    return participant


def _require_show(show_id):
    if show_id is None:
        raise ValidationError('Invalid show selection.', code='MISSING_SHOW')
    show = repository.get_show(show_id)
    if show is None:
        raise ShowNotFound(show_id)
    return show


# --- Запись на шоу ---

def register(caller, show_id):
    participant = resolve_participant(caller)
    target = repository.get_show(show_id)
    check_registration(show_id, target, repository.registered_shows(participant.id))

    db.session.add(Registration(participant_id=participant.id, show_id=target.id))
    try:
        db.session.commit()
    except IntegrityError:
        # Параллельный запрос успел записать ту же пару
        db.session.rollback()
        raise AlreadyRegistered(target.id)

    logger.info("Participant %s registered for show %s", participant.id, target.id)
    return target


def unregister(caller, show_id, now=None):
    now = now or utcnow()
    participant = resolve_participant(caller)
    show = _require_show(show_id)
    registration = repository.find_registration(participant.id, show.id)
    if registration is None:
        raise RegistrationNotFound(show.id)
    if not now < show.start_time:
        raise ShowAlreadyStarted(show)

    db.session.delete(registration)
    db.session.commit()
    logger.info("Participant %s unregistered from show %s", participant.id, show.id)
    return show


def remove_past_registration(caller, show_id, now=None):
    """Участник убирает из своего списка уже закончившееся шоу."""
    now = now or utcnow()
    participant = resolve_participant(caller)
    registration = repository.find_registration(participant.id, show_id)
    if registration is None:
        raise RegistrationNotFound(show_id)
    show = repository.get_show(show_id)
    if not now > show.end_time:
        raise ShowNotFinished(show)

    db.session.delete(registration)
    db.session.commit()
    logger.info("Participant %s removed past show %s", participant.id, show.id)
    return show


# --- Голосование ---

def normalize_designer_ids(designer_ids):
    """Приводит выбор к списку int без повторов, сохраняя порядок."""
    if designer_ids is None or (isinstance(designer_ids, (list, tuple)) and not designer_ids):
        raise NoSelection()
    if not isinstance(designer_ids, (list, tuple)):
        raise ValidationError('designer_ids must be a list of ids.', code='BAD_DESIGNER_IDS')

    result = []
    for raw in designer_ids:
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise ValidationError(f'Invalid designer id: {raw!r}.', code='BAD_DESIGNER_IDS')
        try:
            result.append(int(raw))
        except (TypeError, ValueError):
            raise ValidationError(f'Invalid designer id: {raw!r}.', code='BAD_DESIGNER_IDS')
    return list(dict.fromkeys(result))


def _insert_missing_votes(participant_id, show_id, designer_ids, now):
    created = 0
    for designer_id in designer_ids:
        if repository.find_vote(participant_id, designer_id, show_id) is None:
            db.session.add(Vote(
                participant_id=participant_id,
                designer_id=designer_id,
                show_id=show_id,
                voted_at=now
            ))
            created += 1
    # flush, чтобы IntegrityError вылетел здесь, а не при commit
    db.session.flush()
    return created


def _check_designers(show_id, selected):
    assigned_ids = {d.id for d in repository.show_designers(show_id)}
    if not assigned_ids:
        raise ValidationError(
            'No designers are registered for this show. Voting is not possible.',
            code='NO_DESIGNERS', details={'show_id': show_id}
        )
    unknown = [d for d in selected if d not in assigned_ids]
    if unknown:
        raise ValidationError(
            'Some of the selected designers are not part of this show.',
            code='UNKNOWN_DESIGNERS', details={'designer_ids': unknown}
        )


def submit_votes(caller, show_id, designer_ids, channel=None, now=None):
    """
    Записывает голоса участника за дизайнеров шоу.
    Уже существующие голоса пропускаются, повторная отправка ничего не ломает.
    Возвращает количество новых голосов.
    """
    show = _require_show(show_id)
    selected = normalize_designer_ids(designer_ids)

    participant = resolve_participant(caller)
    if not repository.is_registered(participant.id, show.id):
        raise NotRegistered(show.id)
    _check_designers(show.id, selected)

    now = now or utcnow()
    created = None
    for attempt in (1, 2):
        try:
            created = _insert_missing_votes(participant.id, show.id, selected, now)
            db.session.commit()
            break
        except IntegrityError:
            db.session.rollback()
            logger.info("Vote insert failed for participant %s in show %s (attempt %d)",
                        participant.id, show.id, attempt)
            # Дизайнера могли снять с шоу или удалить, пока шла запись: это не "уже проголосовал"
            if repository.get_show(show.id) is None:
                raise ShowNotFound(show.id)
            if not repository.is_registered(participant.id, show.id):
                raise NotRegistered(show.id)
            _check_designers(show.id, selected)
    if created is None:
        raise ConflictError('Your vote has already been recorded.', code='ALREADY_VOTED',
                            details={'show_id': show.id})

    logger.info("Participant %s voted in show %s: %d new of %d selected",
                participant.id, show.id, created, len(selected))
    if created:
        publish_vote_updated(show.id, channel)
    return created


def unvote(caller, show_id, designer_id, files=None, channel=None):
    participant = resolve_participant(caller)
    vote = repository.find_vote(participant.id, designer_id, show_id)
    if vote is None:
        raise VoteNotFound(show_id, designer_id)

    image_ref = vote.image_ref
    db.session.delete(vote)
    db.session.commit()
    logger.info("Participant %s removed vote for designer %s in show %s",
                participant.id, designer_id, show_id)

    # Картинку удаляем только после удаления голоса и не даём её ошибкам всё отменить
    if image_ref:
        release_images([image_ref], files)
    publish_vote_updated(show_id, channel)


def attach_vote_image(caller, show_id, designer_id, data, filename, files=None):
    participant = resolve_participant(caller)
    vote = repository.find_vote(participant.id, designer_id, show_id)
    if vote is None:
        raise VoteNotFound(show_id, designer_id)
    if vote.image_ref:
        raise VoteImageExists(show_id, designer_id)

    files = files or get_file_store()
    ref = files.store(data, filename)
    vote.image_ref = ref
    db.session.commit()
    logger.info("Attached image %s to vote %s", ref, vote.id)
    return ref


# --- Подсчёт голосов ---

@dataclass(frozen=True)
class TallyRow:
    designer_id: int
    designer_name: str
    category: str
    vote_count: int


@dataclass(frozen=True)
class ShowTally:
    show_id: int
    show_name: str
    total_votes: int
    rows: List[TallyRow] = field(default_factory=list)

    def to_dict(self):
        return {
            'show_id': self.show_id,
            'show_name': self.show_name,
            'total_votes': self.total_votes,
            'designers': [
                {
                    'designer_id': r.designer_id,
                    'name': r.designer_name,
                    'category': r.category,
                    'vote_count': r.vote_count,
                }
                for r in self.rows
            ],
        }


def _tally(show_id):
    show = repository.get_show(show_id)
    if show is None:
        raise ShowNotFound(show_id)

    counts = repository.vote_counts(show.id)
    rows = [
        TallyRow(d.id, d.name, d.category, counts.get(d.id, 0))
        for d in repository.show_designers(show.id)
    ]
    # sorted стабилен: при равенстве остаётся порядок назначения
    rows = sorted(rows, key=lambda r: r.vote_count, reverse=True)
    # Итог считаем по строкам, чтобы он всегда совпадал с их суммой
    return ShowTally(show.id, show.name, sum(r.vote_count for r in rows), rows)


def tally_show(caller, show_id):
    """Итоги голосования по шоу, только для администратора."""
    require_role(caller, ADMIN)
    return _tally(show_id)


def vote_page(caller, show_id):
    """Данные для страницы голосования: шоу, дизайнеры с голосами и уже отмеченные участником."""
    participant = resolve_participant(caller)
    show = _require_show(show_id)
    if not repository.is_registered(participant.id, show.id):
        raise NotRegistered(show.id)

    tally = _tally(show.id)
    counts = {r.designer_id: r.vote_count for r in tally.rows}
    return {
        'show': show.to_dict(),
        'total_votes': tally.total_votes,
        'designers': [
            dict(d.to_dict(), vote_count=counts.get(d.id, 0))
            for d in repository.show_designers(show.id)
        ],
        'my_votes': sorted(repository.voted_designer_ids(participant.id, show.id)),
    }
