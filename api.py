"""JSON routes for authentication and tasks."""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

import auth
import tasks
from schemas import (
    LoginRequest,
    RegisterRequest,
    TaskCreate,
    TaskListQuery,
    TaskUpdate,
    parse,
    validate_task_id,
)

api = Blueprint('api', __name__)


def _json_body():
    return request.get_json(silent=True)


def _caller():
    # The verified Identity from the request loader, never a client-supplied owner
    return current_user._get_current_object()


def _session_response(token, user, status=200):
    body = {'token': token, 'expiresIn': auth.token_lifetime(), 'user': user.to_public()}
    return jsonify(body), status


@api.route('/', methods=['GET'])
def index():
    return jsonify({'message': 'Task Manager API - OK'})


@api.route('/auth/register', methods=['POST'])   # Create a user and hand back a token
def register():
    data = parse(RegisterRequest, _json_body())
    token, user = auth.register(data.name, data.email, data.password)
    return _session_response(token, user, 201)


@api.route('/auth/login', methods=['POST'])
def login():
    data = parse(LoginRequest, _json_body())
    token, user = auth.login(data.email, data.password)
    return _session_response(token, user)


@api.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'me': _caller().to_public()})


@api.route('/tasks', methods=['GET'])   # Supports ?completed=true|false&page=1&limit=10&sort=createdAt:desc
@login_required
def list_tasks():
    query = parse(TaskListQuery, request.args.to_dict())
    sort_field, sort_direction = query.sort_order()
    page = tasks.list_tasks(
        _caller(),
        completed=query.completed,
        page=query.page,
        limit=query.limit,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    return jsonify({'tasks': [task.to_dict() for task in page.tasks], 'meta': page.meta()})


@api.route('/tasks', methods=['POST'])
@login_required
def create_task():
    data = parse(TaskCreate, _json_body())
    task = tasks.create_task(_caller(), data.title, data.description)
    return jsonify({'task': task.to_dict()}), 201


@api.route('/tasks/<task_id>', methods=['GET'])
@login_required
def get_task(task_id):
    task = tasks.get_task(_caller(), validate_task_id(task_id))
    return jsonify({'task': task.to_dict()})


@api.route('/tasks/<task_id>', methods=['PUT'])
@login_required
def update_task(task_id):
    validate_task_id(task_id)
    data = parse(TaskUpdate, _json_body())
    task = tasks.update_task(_caller(), task_id, **data.changes())
    return jsonify({'task': task.to_dict()})


@api.route('/tasks/<task_id>', methods=['DELETE'])
@login_required
def delete_task(task_id):
    tasks.delete_task(_caller(), validate_task_id(task_id))
    return jsonify({'message': 'Task deleted'})
