import logging
from datetime import datetime, timedelta

from extensions import db
from models import User, Participant, Designer, Show, Registration, DesignerAssignment, Vote

logger = logging.getLogger(__name__)

DEMO_PASSWORD = 'password'


def seed_demo_data(now=None):
    """Очищает базу и добавляет тестовые данные. Вызывать внутри app_context."""
    now = now or datetime.utcnow()
    db.create_all()

    # --- 1. ОЧИСТКА ДАННЫХ ---
    # Идем в обратном порядке зависимостей
    for model in (Vote, Registration, DesignerAssignment, Show, Designer, Participant, User):
        db.session.query(model).delete()
    db.session.commit()
    logger.info("Old data removed")

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    try:
        admin = User(email='admin@fashionvote.local', role='admin')
        users = [admin]
        participants = []
        for name, email in [('Luis Doe', 'luisdoe@gmail.com'), ('Ana Lima', 'ana@example.com'), ('Kim Park', 'kim@example.com')]:
            users.append(User(email=email, role='participant'))
            participants.append(Participant(name=name, email=email))
        for user in users:
            user.set_password(DEMO_PASSWORD)
        db.session.add_all(users + participants)

        designers = [
            Designer(name='Maison Vert', category='Haute Couture'),
            Designer(name='Studio Nord', category='Streetwear'),
            Designer(name='Atelier Rosa', category='Evening Wear'),
        ]
        db.session.add_all(designers)

        # Два шоу подряд в один вечер и одно уже прошедшее
        evening = (now + timedelta(days=7)).replace(hour=18, minute=0, second=0, microsecond=0)
        opening = Show(name='Spring Opening', location='Main Hall', start_time=evening, end_time=evening + timedelta(hours=2))
        late = Show(name='Late Night Runway', location='Main Hall', start_time=evening + timedelta(hours=2), end_time=evening + timedelta(hours=4))
        past = Show(name='Winter Preview', location='Gallery', start_time=now - timedelta(days=30), end_time=now - timedelta(days=30) + timedelta(hours=2))
        db.session.add_all([opening, late, past])
        db.session.commit()

        db.session.add_all([
            DesignerAssignment(designer_id=designers[0].id, show_id=opening.id),
            DesignerAssignment(designer_id=designers[1].id, show_id=opening.id),
            DesignerAssignment(designer_id=designers[2].id, show_id=late.id),
            DesignerAssignment(designer_id=designers[0].id, show_id=past.id),
        ])
        db.session.add_all([
            Registration(participant_id=participants[0].id, show_id=opening.id),
            Registration(participant_id=participants[0].id, show_id=late.id),
            Registration(participant_id=participants[1].id, show_id=opening.id),
            Registration(participant_id=participants[2].id, show_id=past.id),
        ])
        db.session.add_all([
            Vote(participant_id=participants[0].id, designer_id=designers[0].id, show_id=opening.id),
            Vote(participant_id=participants[1].id, designer_id=designers[0].id, show_id=opening.id),
            Vote(participant_id=participants[2].id, designer_id=designers[0].id, show_id=past.id),
        ])
        db.session.commit()
        logger.info("Demo data added")
    except Exception:
        db.session.rollback()
        logger.exception("Failed to add demo data")
        raise


if __name__ == '__main__':
    from app import create_app

    # Создаем экземпляр приложения, чтобы получить контекст
    app = create_app()
    with app.app_context():
        seed_demo_data()
