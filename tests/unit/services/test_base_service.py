from __future__ import annotations

import pytest

from leadflow.core.exceptions import DatabaseError
from leadflow.models import Profile
from leadflow.services.base_service import BaseService


def test_commit_failure_rolls_back_and_wraps_error(session, make_profile):
    make_profile(email="dup@example.com")
    service = BaseService(db=session)
    session.add(Profile(first_name="Second", email="dup@example.com"))

    with pytest.raises(DatabaseError):
        service.commit()

    assert session.query(Profile).count() == 1


def test_context_manager_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        with BaseService(db=session_factory()) as service:
            service.db.add(Profile(first_name="Ghost"))
            service.db.flush()
            raise RuntimeError("abort")

    check = session_factory()
    assert check.query(Profile).count() == 0
    check.close()
