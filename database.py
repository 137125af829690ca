"""Экземпляр Flask-SQLAlchemy, общий для приложения и шлюза процедур."""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
