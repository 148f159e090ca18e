import pytest
from app import create_app
from models import db, Account, Category


@pytest.fixture()
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'LOG_LEVEL': 'DEBUG',
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def seed(app):
    """Two accounts and three categories; the last category never gets transactions."""
    checking = Account(name='Checking')
    savings = Account(name='Savings')
    auto = Category(name='Auto & Transport')
    salary = Category(name='Salary')
    gifts = Category(name='Gifts')
    db.session.add_all([checking, savings, auto, salary, gifts])
    db.session.commit()
    return {
        'checking': checking.id,
        'savings': savings.id,
        'auto': auto.id,
        'salary': salary.id,
        'gifts': gifts.id,
    }
