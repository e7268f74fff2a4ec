"""Credential store: registration, login and user roles."""

from typing import List, Optional, Tuple

from concert_manager.binio import BinaryReader, BinaryWriter
from concert_manager.log import get_logger
from concert_manager.models import Credential, UserType
from concert_manager.security import PasswordHasher
from concert_manager.store import EntityStore

logger = get_logger(__name__)


class AuthStore(EntityStore[Credential]):
    """Stores one salted password hash per username."""

    MAGIC = b"AUTH"

    def _find(self, username: str) -> Optional[Credential]:
        return self.find_first(lambda c: c.username == username)

    def register_user(self, username: str, password: str,
                      user_type: UserType = UserType.REGULAR) -> bool:
        """Add a credential. Fails if the username is taken or the save fails."""
        if not username or self._find(username):
            return False

        credential = Credential(
            user_id=self.generate_new_id(),
            username=username,
            password_hash=PasswordHasher.hash_password(password),
            user_type=user_type
        )
        if not self.add(credential):
            return False
        logger.info("user_registered", username=username, user_type=user_type.name)
        return True

    def authenticate_user(self, username: str, password: str) -> bool:
        credential = self._find(username)
        if not credential:
            return False
        return PasswordHasher.verify_password(password, credential.password_hash)

    def change_password(self, username: str, old_password: str, new_password: str) -> bool:
        """Re-hash with a fresh salt after checking the old password."""
        if not self.authenticate_user(username, old_password):
            return False

        credential = self._find(username)
        credential.password_hash = PasswordHasher.hash_password(new_password)
        return self.save_entities()

    def delete_user(self, username: str) -> bool:
        credential = self._find(username)
        if not credential:
            return False
        return self.delete_entity(credential.user_id)

    def get_user_type(self, username: str) -> int:
        """User type value, or -1 if the username is unknown."""
        credential = self._find(username)
        return int(credential.user_type) if credential else -1

    def set_user_type(self, username: str, user_type: UserType) -> bool:
        credential = self._find(username)
        if not credential:
            return False
        credential.user_type = user_type
        return self.save_entities()

    def user_exists(self, username: str) -> bool:
        return self._find(username) is not None

    def get_user_count(self) -> int:
        return self.count()

    def _users_of_type(self, user_type: UserType) -> List[Tuple[str, int]]:
        return [(c.username, int(c.user_type)) for c in self.entities
                if c.user_type == user_type]

    def get_admin_users(self) -> List[Tuple[str, int]]:
        return self._users_of_type(UserType.ADMIN)

    def get_staff_users(self) -> List[Tuple[str, int]]:
        return self._users_of_type(UserType.STAFF)

    def get_regular_users(self) -> List[Tuple[str, int]]:
        return self._users_of_type(UserType.REGULAR)

    def get_all_usernames(self) -> List[str]:
        return [c.username for c in self.entities]

    def ensure_default_admin(self, username: str, password: str) -> bool:
        """Create the admin account on first run. Returns True if it was created."""
        if self.get_admin_users():
            return False
        if self.user_exists(username):
            return self.set_user_type(username, UserType.ADMIN)
        created = self.register_user(username, password, UserType.ADMIN)
        if created:
            logger.warning("default_admin_created", username=username)
        return created

    def get_entity_id(self, entity: Credential) -> int:
        return entity.user_id

    def write_record(self, writer: BinaryWriter, entity: Credential):
        writer.write_int(entity.user_id)
        writer.write_string(entity.username)
        writer.write_string(entity.password_hash)
        writer.write_enum(entity.user_type)

    def read_record(self, reader: BinaryReader) -> Credential:
        return Credential(
            user_id=reader.read_int(),
            username=reader.read_string(),
            password_hash=reader.read_string(),
            user_type=reader.read_enum(UserType)
        )
