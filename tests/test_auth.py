import pytest

from concert_manager.models import UserType
from concert_manager.modules.auth import AuthStore
from concert_manager.security import SALT_SEPARATOR, PasswordHasher


@pytest.fixture
def auth(tmp_path):
    return AuthStore(str(tmp_path / "auth.dat"))


def test_hashes_are_salted():
    first = PasswordHasher.hash_password("Secret#123")
    second = PasswordHasher.hash_password("Secret#123")

    assert first != second
    assert PasswordHasher.verify_password("Secret#123", first)
    assert not PasswordHasher.verify_password("secret#123", first)
    assert not PasswordHasher.verify_password("Secret#123", "no-separator")


def test_register_and_authenticate(auth):
    assert auth.register_user("jane", "Secret#123")
    assert auth.register_user("jane", "Other#456") is False
    assert auth.register_user("", "Secret#123") is False

    assert auth.authenticate_user("jane", "Secret#123")
    assert not auth.authenticate_user("jane", "wrong")
    assert not auth.authenticate_user("ghost", "Secret#123")
    assert "Secret#123" not in auth.get_all()[0].password_hash


def test_change_password(auth):
    auth.register_user("jane", "Secret#123")

    assert auth.change_password("jane", "wrong", "New#Pass1") is False
    assert auth.change_password("jane", "Secret#123", "New#Pass1")
    assert auth.authenticate_user("jane", "New#Pass1")
    assert AuthStore(auth.file_path).authenticate_user("jane", "New#Pass1")


def test_user_types(auth):
    auth.register_user("ann", "x", UserType.ADMIN)
    auth.register_user("sam", "x", UserType.STAFF)
    auth.register_user("reg", "x")

    assert auth.get_user_type("sam") == int(UserType.STAFF)
    assert auth.get_user_type("ghost") == -1
    assert auth.get_admin_users() == [("ann", 2)]
    assert auth.get_staff_users() == [("sam", 1)]
    assert auth.get_regular_users() == [("reg", 0)]

    assert auth.set_user_type("reg", UserType.STAFF)
    assert len(auth.get_staff_users()) == 2
    assert auth.set_user_type("ghost", UserType.STAFF) is False


def test_delete_user(auth):
    auth.register_user("jane", "x")
    assert auth.delete_user("jane")
    assert not auth.user_exists("jane")
    assert auth.delete_user("jane") is False
    assert auth.get_user_count() == 0


def test_default_admin_is_created_once(auth):
    assert auth.ensure_default_admin("admin", "admin123")
    assert auth.ensure_default_admin("admin", "admin123") is False
    assert auth.get_all_usernames() == ["admin"]
    assert auth.authenticate_user("admin", "admin123")


def test_default_admin_promotes_existing_user(auth):
    auth.register_user("admin", "Mine#1234")
    assert auth.ensure_default_admin("admin", "admin123")
    assert auth.get_user_type("admin") == int(UserType.ADMIN)
    assert auth.authenticate_user("admin", "Mine#1234")


def test_stored_hash_layout():
    salt, digest = PasswordHasher.hash_password("Secret#123").split(SALT_SEPARATOR)
    assert len(salt) == 32
    assert len(digest) == 64
    assert not PasswordHasher.verify_password("Secret#123", f"{SALT_SEPARATOR}{digest}")
    assert not PasswordHasher.verify_password("Secret#123", f"{salt}{SALT_SEPARATOR}")


def test_unsaved_registration_fails(auth, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    auth.file_path = str(blocker / "auth.dat")

    assert auth.register_user("jane", "Secret#123") is False
    assert not auth.user_exists("jane")
