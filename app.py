import os
from datetime import datetime
from flask import Flask, Blueprint, request, jsonify
from sqlalchemy import inspect
from sqlalchemy.exc import NoResultFound
from models import db
from logger import setup_logging, get_logger
from services.transaction_service import (
    TransactionData, InvalidDateRange,
    create_transaction, update_transaction, delete_transaction,
    get_transaction, get_transactions, get_transactions_by_category
)

logger = get_logger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')

def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///finance.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    app.config['LOG_DIR'] = os.environ.get('LOG_DIR')
    if test_config:
        app.config.from_mapping(test_config)
    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_DIR'])
    db.init_app(app)
    app.register_blueprint(api)
    with app.app_context():
        db.create_all()
    logger.info('Finance tracker ready (db=%s)', app.config['SQLALCHEMY_DATABASE_URI'])
    return app

# ---------------------- Helpers ----------------------
class PayloadError(ValueError):
    pass

def _parse_date(value, field):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise PayloadError(f'Invalid date for {field}, expected YYYY-MM-DD.')

def _parse_id(value, field):
    if isinstance(value, bool):
        raise PayloadError(f'{field} must be an integer.')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PayloadError(f'{field} must be an integer.')

def _transaction_data(payload) -> TransactionData:
    if not isinstance(payload, dict):
        raise PayloadError('Expected a JSON object.')
    required = {'txn_date', 'payee', 'amount', 'account_id'}
    missing = sorted(required - payload.keys())
    if missing:
        raise PayloadError(f'Missing fields: {", ".join(missing)}')
    try:
        amount = float(payload['amount'])
    except (TypeError, ValueError):
        raise PayloadError('amount must be a number.')
    category_id = payload.get('category_id')
    return TransactionData(
        txn_date=_parse_date(payload['txn_date'], 'txn_date'),
        payee=payload['payee'],
        memo=payload.get('memo'),
        amount=amount,
        account_id=_parse_id(payload['account_id'], 'account_id'),
        category_id=_parse_id(category_id, 'category_id') if category_id is not None else None
    )

def _serialize(tx):
    out = {
        'id': tx.id,
        'txn_date': tx.txn_date.isoformat(),
        'payee': tx.payee,
        'memo': tx.memo or '',
        'amount': tx.amount,
        'account_id': tx.account_id,
        'category_id': tx.category_id
    }
    unloaded = inspect(tx).unloaded
    if 'account' not in unloaded:
        out['account'] = {'id': tx.account.id, 'name': tx.account.name} if tx.account else None
    if 'category' not in unloaded:
        out['category'] = {'id': tx.category.id, 'name': tx.category.name} if tx.category else None
    return out

# ---------------------- Error Handlers ----------------------
@api.errorhandler(NoResultFound)
def _not_found(e):
    return jsonify({'success': False, 'message': 'Transaction not found.'}), 404

@api.errorhandler(PayloadError)
@api.errorhandler(InvalidDateRange)
def _bad_request(e):
    return jsonify({'success': False, 'message': str(e)}), 400

# ---------------------- API Endpoints ----------------------
@api.route('/transactions', methods=['GET'])
def api_transactions():
    account_id = request.args.get('account_id')
    if account_id is not None:
        account_id = _parse_id(account_id, 'account_id')
    return jsonify([_serialize(tx) for tx in get_transactions(account_id)])

@api.route('/transactions', methods=['POST'])
def api_create_transaction():
    tx = create_transaction(_transaction_data(request.get_json(silent=True)))
    return jsonify(_serialize(get_transaction(tx.id))), 201

@api.route('/transactions/<int:txn_id>', methods=['GET'])
def api_get_transaction(txn_id):
    return jsonify(_serialize(get_transaction(txn_id)))

@api.route('/transactions/<int:txn_id>', methods=['PUT'])
def api_update_transaction(txn_id):
    update_transaction(txn_id, _transaction_data(request.get_json(silent=True)))
    return jsonify(_serialize(get_transaction(txn_id)))

@api.route('/transactions/<int:txn_id>', methods=['DELETE'])
def api_delete_transaction(txn_id):
    delete_transaction(txn_id)
    return jsonify({'success': True, 'message': 'Transaction deleted.'})

@api.route('/transactions/by_category')
def api_transactions_by_category():
    """Category totals; start_date and end_date are both optional but go together."""
    start = request.args.get('start_date')
    end = request.args.get('end_date')
    start = _parse_date(start, 'start_date') if start else None
    end = _parse_date(end, 'end_date') if end else None
    return jsonify(get_transactions_by_category(start, end))


# ---------------------- Run App ----------------------
if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
