"""Tests for the User model helpers."""

import pytest
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User
from tests.factories import create_profile, create_user


def test_user_defaults(app_ctx):
    user = User(email="helper@example.com", role="mentee")
    db.session.add(user)
    db.session.commit()

    assert len(user.id) == 36
    assert user.provider == "local"
    assert user.provider_id is None
    assert user.is_verified is False
    assert user.created_at is not None
    assert user.can_authenticate is False


def test_to_dict_hides_password_and_embeds_profile(app_ctx):
    user = create_user("helper@example.com", role="mentor")
    assert user.can_authenticate is True
    assert user.to_dict()["profile"] is None

    create_profile(user, first_name="Ada")
    db.session.refresh(user)
    data = user.to_dict()

    assert "password_hash" not in data
    assert data["role"] == "mentor"
    assert data["profile"]["first_name"] == "Ada"


def test_external_accounts_authenticate_without_password(app_ctx):
    user = create_user("g@gmail.com", password=None, provider="google", provider_id="g-1")

    assert user.can_authenticate is True


def test_email_is_unique(app_ctx):
    create_user("dup@example.com")

    db.session.add(User(email="dup@example.com", role="mentee"))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_provider_identity_is_unique(app_ctx):
    create_user("a@gmail.com", password=None, provider="google", provider_id="g-1")

    db.session.add(
        User(email="b@gmail.com", role="mentee", provider="google", provider_id="g-1")
    )
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_local_accounts_share_null_provider_id(app_ctx):
    create_user("one@example.com")
    create_user("two@example.com")

    assert User.query.filter_by(provider="local").count() == 2


def test_role_is_constrained(app_ctx):
    db.session.add(User(email="root@example.com", role="superuser"))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()
