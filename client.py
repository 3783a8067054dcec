"""Python client for the task API, plus the state behind the task board UI.

The token lives in a local JSON file. Every request is built from an
explicit Session, and the session's expiry is checked before it is used.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class ApiError(Exception):
    """A non-2xx answer from the API."""

    def __init__(self, status, message, errors=None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.errors = errors or []

    @property
    def field_errors(self):
        return {e['field']: e['message'] for e in self.errors if 'field' in e}


class AuthenticationRequired(ApiError):
    """No usable session. The caller should send the user back to login."""

    def __init__(self, message='Please log in'):
        super().__init__(401, message)


@dataclass
class Session:
    token: str
    user: dict
    expires_at: float

    def is_expired(self, now=None):
        return (time.time() if now is None else now) >= self.expires_at

    def authorization(self):
        return {'Authorization': f'Bearer {self.token}'}


class SessionStore:
    """Keeps the session in a JSON file between runs."""

    def __init__(self, path):
        self.path = path

    def load(self) -> Optional[Session]:
        try:
            with open(self.path, encoding='utf-8') as fh:
                return Session(**json.load(fh))
        except FileNotFoundError:
            return None
        except (ValueError, TypeError):
            logger.warning('Discarding unreadable session file %s', self.path)
            self.clear()
            return None

    def save(self, session):
        with open(self.path, 'w', encoding='utf-8') as fh:
            json.dump(asdict(session), fh)

    def clear(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class ApiClient:

    def __init__(self, base_url, store, http=None, clock=time.time, timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.store = store
        self.http = http or requests.Session()
        self.clock = clock
        self.timeout = timeout

    # -- session -----------------------------------------------------------

    def current_session(self) -> Session:
        session = self.store.load()
        if session is None:
            raise AuthenticationRequired()
        if session.is_expired(self.clock()):
            logger.info('Session expired, logging out')
            self.store.clear()
            raise AuthenticationRequired('Session expired, please log in again')
        return session

    def logout(self):
        self.store.clear()

    def _start_session(self, body):
        session = Session(
            token=body['token'],
            user=body['user'],
            expires_at=self.clock() + body.get('expiresIn', 3600),
        )
        self.store.save(session)
        return session

    # -- transport ---------------------------------------------------------

    def _send(self, method, path, session=None, json=None, params=None):
        headers = {'Accept': 'application/json'}
        if session is not None:
            headers.update(session.authorization())

        response = self.http.request(
            method,
            self.base_url + path,
            json=json,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )
        try:
            body = response.json()
        except ValueError:
            body = None

        if 200 <= response.status_code < 300:
            return body

        body = body if isinstance(body, dict) else {}
        errors = body.get('errors') or []
        message = body.get('message') or '; '.join(e.get('message', '') for e in errors) or 'Request failed'
        if response.status_code == 401 and session is not None:
            # The server no longer accepts this token
            self.store.clear()
            raise AuthenticationRequired(message)
        raise ApiError(response.status_code, message, errors)

    def _authed(self, method, path, **kwargs):
        return self._send(method, path, session=self.current_session(), **kwargs)

    # -- operations --------------------------------------------------------

    def register(self, name, email, password):
        body = self._send('POST', '/auth/register', json={'name': name, 'email': email, 'password': password})
        return self._start_session(body)

    def login(self, email, password):
        body = self._send('POST', '/auth/login', json={'email': email, 'password': password})
        return self._start_session(body)

    def me(self):
        return self._authed('GET', '/me')['me']

    def list_tasks(self, completed=None, page=1, limit=10, sort='createdAt:desc'):
        params = {'page': page, 'limit': limit, 'sort': sort}
        if completed is not None:
            params['completed'] = 'true' if completed else 'false'
        return self._authed('GET', '/tasks', params=params)

    def create_task(self, title, description=''):
        return self._authed('POST', '/tasks', json={'title': title, 'description': description})['task']

    def get_task(self, task_id):
        return self._authed('GET', f'/tasks/{task_id}')['task']

    def update_task(self, task_id, **changes):
        return self._authed('PUT', f'/tasks/{task_id}', json=changes)['task']

    def delete_task(self, task_id):
        self._authed('DELETE', f'/tasks/{task_id}')


FILTERS = {'all': None, 'active': False, 'completed': True}


class TaskBoard:
    """Local UI state for one user's task list.

    Mutations never patch the list in place; each one re-fetches the
    current page. Only one task can be in edit mode at a time.
    """

    def __init__(self, api, limit=5):
        self.api = api
        self.default_limit = limit
        self._reset()
        self.logged_out = False

    def _reset(self):
        self.limit = self.default_limit
        self.filter = 'all'
        self.sort_order = 'desc'
        self.page = 1
        self.tasks = []
        self.meta = {'total': 0, 'page': 1, 'limit': self.limit, 'pages': 0}
        self.editing_id = None
        self.field_errors = {}
        self.banner = None

    def _run(self, action, failure='Request failed'):
        self.field_errors = {}
        self.banner = None
        try:
            return action()
        except AuthenticationRequired:
            self._force_logout()
        except ApiError as exc:
            self.field_errors = exc.field_errors
            self.banner = exc.message or failure
        return None

    def _force_logout(self):
        self.api.logout()
        self._reset()
        self.logged_out = True

    def refresh(self):
        def load():
            result = self.api.list_tasks(
                completed=FILTERS[self.filter],
                page=self.page,
                limit=self.limit,
                sort=f'createdAt:{self.sort_order}',
            )
            self.tasks = result['tasks']
            self.meta = result['meta']
            return self.tasks
        return self._run(load, 'Failed to load tasks')

    # -- view controls -----------------------------------------------------

    def set_filter(self, name):
        if name not in FILTERS:
            raise ValueError(f'unknown filter {name!r}')
        self.filter = name
        self.page = 1
        return self.refresh()

    def set_sort_order(self, order):
        if order not in ('asc', 'desc'):
            raise ValueError(f'unknown sort order {order!r}')
        self.sort_order = order
        self.page = 1
        return self.refresh()

    def set_limit(self, limit):
        self.limit = limit
        self.page = 1
        return self.refresh()

    def next_page(self):
        if self.page < self.meta.get('pages', 0):
            self.page += 1
        return self.refresh()

    def previous_page(self):
        self.page = max(1, self.page - 1)
        return self.refresh()

    # -- mutations ---------------------------------------------------------

    def _mutate(self, action, failure):
        if self._run(action, failure) is None:
            return False
        self.refresh()
        return True

    def add(self, title, description=''):
        return self._mutate(lambda: self.api.create_task(title, description), 'Create failed')

    def toggle(self, task):
        return self._mutate(
            lambda: self.api.update_task(task['id'], completed=not task['completed']),
            'Update failed',
        )

    def delete(self, task):
        def remove():
            self.api.delete_task(task['id'])
            return True
        if task['id'] == self.editing_id:
            self.editing_id = None
        return self._mutate(remove, 'Delete failed')

    def start_edit(self, task):
        if self.editing_id is not None and self.editing_id != task['id']:
            return False
        self.editing_id = task['id']
        return True

    def cancel_edit(self):
        self.editing_id = None

    def save_edit(self, title, description=''):
        if self.editing_id is None:
            return False
        task_id = self.editing_id
        saved = self._mutate(
            lambda: self.api.update_task(task_id, title=title, description=description),
            'Update failed',
        )
        if saved:
            self.editing_id = None
        return saved
