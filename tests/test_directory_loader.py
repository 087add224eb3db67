"""Tests for load_directory, the seeding entry point for the directory tables."""

from pathlib import Path

import pytest
import yaml
from sqlalchemy import select

from approval_kernel.directory_loader import load_directory
from approval_kernel.exceptions import InvalidRequestError
from approval_kernel.models.directory import Post, User


class TestLoad:

    def test_returns_ids_by_key(self, session):
        ids = load_directory(session, {
            "depts": [{"key": "ops", "dept_name": "Operations"}],
            "permissions": [{"code": "APPROVAL_REVIEW"}],
            "posts": [{"key": "mgr", "post_name": "Manager", "permissions": ["APPROVAL_REVIEW"]}],
            "users": [{"key": "olga", "real_name": "Olga Ivanova", "dept": "ops", "post": "mgr"}],
        })

        assert set(ids) == {"ops", "APPROVAL_REVIEW", "mgr", "olga"}
        user = session.get(User, ids["olga"])
        assert user.username == "olga"
        assert user.dept_id == ids["ops"]
        assert user.status == 1
        post = session.get(Post, ids["mgr"])
        assert post.post_code == "mgr"
        assert post.permission_codes == frozenset({"APPROVAL_REVIEW"})

    def test_explicit_username_and_status(self, session):
        ids = load_directory(session, {
            "users": [{"key": "x", "username": "xavier", "real_name": "Xavier", "status": 0}],
        })
        user = session.get(User, ids["x"])
        assert user.username == "xavier"
        assert user.status == 0
        assert user.dept_id is None

    def test_empty_document(self, session):
        assert load_directory(session, {}) == {}

    def test_example_file_loads(self, session):
        path = Path(__file__).resolve().parents[1] / "config" / "directory.example.yaml"
        ids = load_directory(session, yaml.safe_load(path.read_text()))
        assert session.execute(select(User)).scalars().first() is not None
        assert ids

    def test_logs_counts(self, session, captured_logs):
        load_directory(session, {"depts": [{"key": "a", "dept_name": "A"}]})
        [record] = [r for r in captured_logs() if r["message"] == "directory_loaded"]
        assert record["depts"] == 1


class TestRejections:

    def test_duplicate_key(self, session):
        with pytest.raises(InvalidRequestError, match="duplicate"):
            load_directory(session, {
                "depts": [{"key": "a", "dept_name": "A"}],
                "users": [{"key": "a", "real_name": "Ann"}],
            })

    def test_unknown_department(self, session):
        with pytest.raises(InvalidRequestError) as exc_info:
            load_directory(session, {"users": [{"key": "u", "real_name": "U", "dept": "nowhere"}]})
        assert exc_info.value.field == "dept"

    def test_unknown_permission(self, session):
        with pytest.raises(InvalidRequestError) as exc_info:
            load_directory(session, {
                "posts": [{"key": "p", "post_name": "P", "permissions": ["MISSING"]}],
            })
        assert exc_info.value.field == "permissions"
