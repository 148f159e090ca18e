from dataclasses import dataclass, asdict
from datetime import date
from sqlalchemy import and_, func
from sqlalchemy.orm import joinedload
from models import db, Transaction, Category
from logger import get_logger

logger = get_logger(__name__)


class InvalidDateRange(ValueError):
    """Raised when a category totals range is half-open or inverted."""


@dataclass
class TransactionData:
    """Every writable column of a transaction. Updates replace the whole row with these."""
    txn_date: date
    payee: str
    memo: str | None
    amount: float
    account_id: int
    category_id: int | None


@dataclass
class CategoryTotalsQuery:
    start_date: date | None = None
    end_date: date | None = None

    def validate(self):
        if (self.start_date is None) != (self.end_date is None):
            raise InvalidDateRange('start_date and end_date must be given together.')
        if self.start_date is not None and self.start_date > self.end_date:
            raise InvalidDateRange('start_date must not be after end_date.')
        return self

    @property
    def has_range(self) -> bool:
        return self.start_date is not None


def _with_relations(query, with_relations: bool):
    if with_relations:
        query = query.options(joinedload(Transaction.account), joinedload(Transaction.category))
    return query

# ---------------------- Writes ----------------------
def create_transaction(data: TransactionData) -> Transaction:
    """Insert a new transaction and return it with its assigned id."""
    tx = Transaction(**asdict(data))
    db.session.add(tx)
    db.session.commit()
    logger.info('Created transaction %s (account=%s, amount=%s)', tx.id, tx.account_id, tx.amount)
    return tx

def update_transaction(txn_id: int, data: TransactionData) -> Transaction:
    """Replace every field of an existing transaction.

    Raises sqlalchemy.exc.NoResultFound when no row has ``txn_id``.
    """
    tx = Transaction.query.filter_by(id=txn_id).one()
    for field, value in asdict(data).items():
        setattr(tx, field, value)
    db.session.commit()
    logger.info('Updated transaction %s', txn_id)
    return tx

def delete_transaction(txn_id: int) -> None:
    # Missing ids are a no-op
    deleted = Transaction.query.filter_by(id=txn_id).delete()
    db.session.commit()
    logger.info('Deleted transaction %s (%d row(s))', txn_id, deleted)

# ---------------------- Reads ----------------------
def get_transaction(txn_id: int, with_relations: bool = True) -> Transaction:
    """Fetch one transaction, failing with NoResultFound if it does not exist."""
    logger.debug('Fetching transaction %s', txn_id)
    q = _with_relations(Transaction.query.filter_by(id=txn_id), with_relations)
    return q.one()

def get_transactions(account_id: int | None = None, with_relations: bool = True) -> list[Transaction]:
    q = Transaction.query
    if account_id is not None:
        q = q.filter_by(account_id=account_id)
    q = _with_relations(q, with_relations)
    txs = q.order_by(Transaction.txn_date.desc(), Transaction.id.desc()).all()
    logger.debug('Fetched %d transactions (account=%s)', len(txs), account_id)
    return txs

def get_transactions_by_category(start_date: date | None = None, end_date: date | None = None) -> list[dict]:
    """Sum transaction amounts per category, optionally within an inclusive date range.

    Every category gets a row; categories without matching transactions have
    ``amount`` None. Matching transactions with no category are totalled in a
    trailing ``cat_id`` None row, so the rows always add up to the overall sum.
    """
    params = CategoryTotalsQuery(start_date, end_date).validate()

    join_on = Transaction.category_id == Category.id
    if params.has_range:
        join_on = and_(join_on, Transaction.txn_date.between(params.start_date, params.end_date))

    rows = db.session.query(
        Category.id.label('cat_id'),
        Category.name.label('cat_name'),
        func.sum(Transaction.amount).label('amount')
    ).outerjoin(Transaction, join_on).group_by(Category.id, Category.name).order_by(Category.id).all()

    totals = [{
        'cat_id': r.cat_id,
        'cat_name': r.cat_name,
        'amount': float(r.amount) if r.amount is not None else None
    } for r in rows]

    q = db.session.query(
        func.count(Transaction.id).label('n'),
        func.sum(Transaction.amount).label('amount')
    ).filter(Transaction.category_id.is_(None))
    if params.has_range:
        q = q.filter(Transaction.txn_date.between(params.start_date, params.end_date))
    uncategorized = q.one()
    if uncategorized.n:
        totals.append({'cat_id': None, 'cat_name': None, 'amount': float(uncategorized.amount)})

    logger.debug('Category totals %s..%s: %d rows', params.start_date, params.end_date, len(totals))
    return totals
