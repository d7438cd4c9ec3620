import pytest

import users
from errors import AuthenticationError, ConflictError, NotFoundError
from schemas import UserCreate, UserUpdate


def _signup(db, email="asha@example.com", password="secret123"):
    return users.create_user(db, UserCreate(name="Asha", email=email, age=29, password=password))


class TestCreateUser:
    def test_password_hashed_and_hidden(self, db):
        user = _signup(db)
        assert "password" not in user
        stored = db["users"].find_one({"email": "asha@example.com"})
        assert stored["password"] != "secret123"
        assert stored["password"].startswith("$2")

    def test_defaults(self, db):
        user = _signup(db)
        assert user["role"] == "user"
        assert user["isActive"] is True
        assert user["hobbies"] == []

    def test_same_password_different_hashes(self, db):
        _signup(db, email="a@example.com")
        _signup(db, email="b@example.com")
        first = db["users"].find_one({"email": "a@example.com"})["password"]
        second = db["users"].find_one({"email": "b@example.com"})["password"]
        assert first != second

    def test_duplicate_email_rejected(self, db):
        _signup(db)
        with pytest.raises(ConflictError):
            _signup(db, email="ASHA@example.com ")
        assert db["users"].count_documents({}) == 1


class TestAuthenticate:
    def test_matching_password(self, db):
        created = _signup(db)
        user = users.authenticate(db, "asha@example.com", "secret123")
        assert user["id"] == created["id"]
        assert "password" not in user

    def test_wrong_password(self, db):
        _signup(db)
        with pytest.raises(AuthenticationError):
            users.authenticate(db, "asha@example.com", "secret124")

    def test_unknown_email(self, db):
        with pytest.raises(AuthenticationError):
            users.authenticate(db, "nobody@example.com", "secret123")

    def test_unrecognised_stored_hash(self, db):
        db["users"].insert_one({"name": "Old", "email": "old@example.com", "password": "plaintext"})
        with pytest.raises(AuthenticationError):
            users.authenticate(db, "old@example.com", "plaintext")


class TestUpdateUser:
    def test_password_rehashed(self, db):
        created = _signup(db)
        users.update_user(db, created["id"], UserUpdate(password="newsecret"))
        stored = db["users"].find_one({"email": "asha@example.com"})
        assert stored["password"] != "newsecret"
        users.authenticate(db, "asha@example.com", "newsecret")
        with pytest.raises(AuthenticationError):
            users.authenticate(db, "asha@example.com", "secret123")

    def test_partial_update(self, db):
        created = _signup(db)
        updated = users.update_user(db, created["id"], UserUpdate(age=30))
        assert updated["age"] == 30
        assert updated["name"] == "Asha"
        assert "password" not in updated

    def test_email_taken(self, db):
        _signup(db, email="a@example.com")
        second = _signup(db, email="b@example.com")
        with pytest.raises(ConflictError):
            users.update_user(db, second["id"], UserUpdate(email="a@example.com"))

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            users.update_user(db, "bad-id", UserUpdate(age=30))


class TestReadAndDelete:
    def test_get_hides_password(self, db):
        created = _signup(db)
        assert "password" not in users.get_user(db, created["id"])

    def test_list(self, db):
        _signup(db)
        assert [u["email"] for u in users.list_users(db)] == ["asha@example.com"]

    def test_delete(self, db):
        created = _signup(db)
        users.delete_user(db, created["id"])
        with pytest.raises(NotFoundError):
            users.get_user(db, created["id"])
