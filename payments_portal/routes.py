# payments_portal/routes.py

# JSON API for the customer payments portal. Views only translate HTTP to
# service calls; errors propagate as PortalError and are rendered by the
# handlers in payments_portal.errors.

from flask import Blueprint, current_app, g, jsonify, request

from payments_portal.authentication.rbac import UserRole, require_role, token_required
from payments_portal.errors import ValidationError
from payments_portal.operations.health_monitor import check_health
from payments_portal.security.input_validator import InputValidator

api = Blueprint('api', __name__, url_prefix='/api')
validator = InputValidator()


def _service(name):
    return current_app.extensions[f'portal.{name}']


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@api.route('/register', methods=['POST'])
def register():
    data = validator.validate_registration_data(_json_body())
    _service('sessions').register(**data)
    return jsonify({'message': 'User registered securely'}), 201


@api.route('/login', methods=['POST'])
def login():
    data = validator.validate_login_data(_json_body())
    token, user = _service('sessions').login(data['account_number'], data['password'])
    return jsonify({
        'message': 'Login successful',
        'token': token,
        'userId': str(user.id),
        'role': user.role,
    })


@api.route('/pay', methods=['POST'])
@token_required(optional=True)
def pay():
    data = _json_body()
    payment = validator.validate_payment_data(data)
    # A valid session names the owner; otherwise the client supplies it
    if g.current_user is not None:
        user_id = g.current_user['user_id']
    else:
        user_id = validator.validate_user_id(data)
    _service('workflow').create(user_id=user_id, **payment)
    return jsonify({'message': 'Transaction stored securely'}), 201


@api.route('/admin/transactions', methods=['GET'])
@token_required
@require_role(UserRole.ADMIN)
def list_transactions():
    transactions = _service('workflow').list_all()
    return jsonify([tx.to_dict() for tx in transactions])


@api.route('/admin/verify/<int:tx_id>', methods=['PUT'])
@token_required
@require_role(UserRole.ADMIN)
def verify_transaction(tx_id):
    tx = _service('workflow').verify(tx_id, admin_id=g.current_user['user_id'])
    return jsonify({'message': 'Transaction verified', 'tx': tx.to_dict()})


@api.route('/admin/submit/<int:tx_id>', methods=['PUT'])
@token_required
@require_role(UserRole.ADMIN)
def submit_transaction(tx_id):
    tx = _service('workflow').submit_to_swift(tx_id, admin_id=g.current_user['user_id'])
    return jsonify({'message': 'Transaction submitted to SWIFT', 'tx': tx.to_dict()})


@api.route('/health', methods=['GET'])
def health():
    result = check_health()
    return jsonify(result), 200 if result['overall_ok'] else 503
