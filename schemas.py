"""Request shapes accepted by the API, validated with pydantic.

Each schema maps a field to the message a client sees when that field is
rejected, so the error body reads the same whatever pydantic complained
about.
"""

import re
from typing import ClassVar, Dict, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from errors import ValidationError
from models import MAX_PAGE, MAX_PAGE_LIMIT, MAX_TITLE_LENGTH, TASK_SORT_COLUMNS

EMAIL_REGEX = r'[\w\.\+-]+@[\w\.-]+\.\w+'  # basic email pattern, matched against the whole value
TASK_ID_REGEX = r'[0-9a-f]{32}'
MIN_PASSWORD_LENGTH = 6
OWN_MESSAGE_ERRORS = {'title_too_long'}


class RequestSchema(BaseModel):
    model_config = ConfigDict(strict=True, extra='ignore')

    messages: ClassVar[Dict[str, str]] = {}


class RegisterRequest(RequestSchema):
    name: str
    email: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    messages: ClassVar[Dict[str, str]] = {
        'name': 'name is required',
        'email': 'valid email is required',
        'password': f'password must be at least {MIN_PASSWORD_LENGTH} characters',
    }

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, value):
        value = value.strip()
        if not value:
            raise ValueError('blank')
        return value

    @field_validator('email')
    @classmethod
    def email_well_formed(cls, value):
        if not re.fullmatch(EMAIL_REGEX, value):
            raise ValueError('malformed')
        return value


class LoginRequest(RequestSchema):
    email: str
    password: str = Field(min_length=1)

    messages: ClassVar[Dict[str, str]] = {
        'email': 'valid email is required',
        'password': 'password is required',
    }

    @field_validator('email')
    @classmethod
    def email_well_formed(cls, value):
        if not re.fullmatch(EMAIL_REGEX, value):
            raise ValueError('malformed')
        return value


def _title_not_blank(value):
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError('blank')
    if len(value) > MAX_TITLE_LENGTH:
        raise PydanticCustomError(
            'title_too_long', 'title must be at most {max_length} characters', {'max_length': MAX_TITLE_LENGTH})
    return value


class TaskCreate(RequestSchema):
    title: str
    description: Optional[str] = None

    messages: ClassVar[Dict[str, str]] = {
        'title': 'title is required',
        'description': 'description must be text',
    }

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, value):
        return _title_not_blank(value)


class TaskUpdate(RequestSchema):
    title: str = None
    description: Optional[str] = None
    completed: bool = None

    messages: ClassVar[Dict[str, str]] = {
        'title': 'title must be a non-empty string',
        'description': 'description must be text',
        'completed': 'completed must be true or false',
    }

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, value):
        return _title_not_blank(value)

    def changes(self):
        """Only the fields the client actually sent."""
        changes = {name: getattr(self, name) for name in self.model_fields_set}
        if 'description' in changes and changes['description'] is None:
            changes['description'] = ''
        return changes


class TaskListQuery(BaseModel):
    # Query strings arrive as text, so this one stays lax
    model_config = ConfigDict(extra='ignore')

    completed: Optional[bool] = None
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: int = Field(default=10, ge=1, le=MAX_PAGE_LIMIT)
    sort: str = 'createdAt:desc'

    messages: ClassVar[Dict[str, str]] = {
        'completed': 'completed must be true or false',
        'page': f'page must be between 1 and {MAX_PAGE}',
        'limit': 'limit must be between 1 and 100',
        'sort': 'sort must look like field:asc or field:desc',
    }

    @field_validator('completed', mode='before')
    @classmethod
    def completed_is_flag(cls, value):
        if value is None or isinstance(value, bool):
            return value
        lowered = str(value).lower()
        if lowered not in ('true', 'false'):
            raise ValueError('not a flag')
        return lowered == 'true'

    @field_validator('sort')
    @classmethod
    def sort_is_known(cls, value):
        field, _, direction = value.partition(':')
        if field not in TASK_SORT_COLUMNS or direction not in ('', 'asc', 'desc'):
            raise ValueError('unknown sort')
        return value

    def sort_order(self):
        field, _, direction = self.sort.partition(':')
        return field, direction or 'desc'


def _field_errors(schema, exc):
    errors, seen = [], set()
    for error in exc.errors():
        field = str(error['loc'][0]) if error['loc'] else 'body'
        if field in seen:
            continue
        seen.add(field)
        # Length errors keep their own message, everything else uses the field's
        message = error['msg'] if error['type'] in OWN_MESSAGE_ERRORS else schema.messages.get(field, error['msg'])
        errors.append({'field': field, 'message': message})
    return errors


def parse(schema, data):
    """Validate ``data`` against ``schema`` or raise ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError.single('body', 'request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(_field_errors(schema, exc)) from exc


def validate_task_id(task_id):
    if not re.fullmatch(TASK_ID_REGEX, task_id):
        raise ValidationError.single('id', 'invalid task id')
    return task_id
