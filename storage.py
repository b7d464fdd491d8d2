# storage.py
# Хранилище картинок, прикреплённых к голосам

import logging
import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from errors import ValidationError

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Файлы лежат в одной папке под случайными именами; наружу отдаётся только имя (ref)."""

    def __init__(self, root, allowed_extensions=None):
        self.root = root
        self.allowed_extensions = {ext.lower() for ext in (allowed_extensions or ())}

    def _extension(self, filename):
        filename = secure_filename(filename or '')
        if '.' not in filename:
            return ''
        return filename.rsplit('.', 1)[1].lower()

    def store(self, data, filename):
        if not data:
            raise ValidationError('The uploaded file is empty.', code='EMPTY_UPLOAD')
        ext = self._extension(filename)
        if self.allowed_extensions and ext not in self.allowed_extensions:
            raise ValidationError(
                f"Only {', '.join(sorted(self.allowed_extensions))} images are allowed.",
                code='BAD_IMAGE_TYPE',
                details={'filename': filename}
            )
        os.makedirs(self.root, exist_ok=True)
        ref = uuid.uuid4().hex + (f'.{ext}' if ext else '')
        with open(self.path_for(ref), 'wb') as fh:
            fh.write(data)
        logger.info("Stored image %s (%d bytes)", ref, len(data))
        return ref

    def path_for(self, ref):
        # ref всегда генерируем сами, но чужой ввод сюда тоже попадает (раздача файлов)
        if not ref or secure_filename(ref) != ref:
            raise ValidationError('Invalid image reference.', code='BAD_IMAGE_REF')
        return os.path.join(self.root, ref)

    def delete(self, ref):
        os.remove(self.path_for(ref))
        logger.info("Deleted image %s", ref)


def get_file_store():
    return current_app.extensions['file_store']


def release_images(refs, files=None):
    """Удаляет картинки после того, как их голоса уже удалены. Ошибки только логируются."""
    files = files or get_file_store()
    for ref in refs:
        try:
            files.delete(ref)
        except (OSError, ValidationError) as e:
            logger.warning("Could not release image %s: %s", ref, e)
