# models/__init__.py
# Инициализация моделей

from .user import User
from .participant import Participant
from .designer import Designer
from .show import Show
from .registration import Registration
from .designer_assignment import DesignerAssignment
from .vote import Vote
