"""Owner-scoped task operations.

Every query here carries the owner filter, so a task that belongs to
someone else behaves exactly like one that does not exist.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from auth import Identity
from errors import NotFound, ValidationError
from extensions import db
from models import DEFAULT_PAGE_LIMIT, MAX_PAGE, MAX_PAGE_LIMIT, MAX_TITLE_LENGTH, TASK_SORT_COLUMNS, Task

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = DEFAULT_PAGE_LIMIT
MAX_LIMIT = MAX_PAGE_LIMIT
UPDATABLE_FIELDS = ('title', 'description', 'completed')


@dataclass
class Page:
    tasks: List[Task]
    total: int
    page: int
    limit: int

    @property
    def pages(self):
        return math.ceil(self.total / self.limit)

    def meta(self):
        return {'total': self.total, 'page': self.page, 'limit': self.limit, 'pages': self.pages}


def _owner_id(owner):
    if not isinstance(owner, Identity):
        raise TypeError('owner must be a verified Identity')
    return owner.id


def _clean_title(title):
    title = (title or '').strip()
    if not title:
        raise ValidationError.single('title', 'title is required')
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError.single('title', f'title must be at most {MAX_TITLE_LENGTH} characters')
    return title


def _owned(owner, task_id):
    return Task.query.filter_by(id=task_id, owner=_owner_id(owner))


def list_tasks(owner, completed: Optional[bool] = None, page=1, limit=DEFAULT_LIMIT,
               sort_field='createdAt', sort_direction='desc') -> Page:
    """One page of the owner's tasks plus the total across all pages."""
    query = Task.query.filter_by(owner=_owner_id(owner))
    if completed is not None:
        query = query.filter_by(completed=completed)

    column = TASK_SORT_COLUMNS.get(sort_field)
    if column is None:
        raise ValidationError.single('sort', f'cannot sort by {sort_field}')
    order = column.asc() if sort_direction == 'asc' else column.desc()

    page = max(1, min(MAX_PAGE, int(page)))
    limit = max(1, min(MAX_LIMIT, int(limit)))

    total = query.count()
    tasks = (query.order_by(order, Task.id)
             .offset((page - 1) * limit)
             .limit(limit)
             .all())
    return Page(tasks=tasks, total=total, page=page, limit=limit)


def create_task(owner, title, description=None) -> Task:
    task = Task(
        title=_clean_title(title),
        description=description or '',
        owner=_owner_id(owner),     # link task to the verified caller
        completed=False,
    )
    db.session.add(task)
    db.session.commit()
    logger.info('User %s created task %s', task.owner, task.id)
    return task


def get_task(owner, task_id) -> Task:
    task = _owned(owner, task_id).first()
    if task is None:
        raise NotFound()
    return task


def update_task(owner, task_id, /, **changes) -> Task:
    """Apply only the supplied fields among title, description, completed."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError([{'field': name, 'message': f'{name} cannot be updated'}
                               for name in sorted(unknown)])
    if 'title' in changes:
        changes['title'] = _clean_title(changes['title'])
    if 'description' in changes and changes['description'] is None:
        changes['description'] = ''

    task = get_task(owner, task_id)
    for name, value in changes.items():
        setattr(task, name, value)
    db.session.commit()
    logger.debug('User %s updated task %s: %s', task.owner, task.id, sorted(changes))
    return task


def delete_task(owner, task_id):
    deleted = _owned(owner, task_id).delete()
    db.session.commit()
    if not deleted:
        raise NotFound()
    logger.info('User %s deleted task %s', owner.id, task_id)
